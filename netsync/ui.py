"""Console prompts used during interactive conflict resolution."""

from __future__ import annotations

import os
import re
import sys
from typing import IO, Callable, Sequence

from loguru import logger

_YES = re.compile(r"^[yY]+([eE]+[sS]+)?$")
_NO = re.compile(r"^[nN]+([oO]+)?$")

RETRY_MESSAGE = "A decision could not be determined from your response. Try again."


class Prompter:
    """Asks questions over injectable input/output callables."""

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
        indent: int = 4,
    ):
        self.input_fn = input_fn
        self.output_fn = output_fn
        self.indent = indent

    def say(self, message: str) -> None:
        self.output_fn(message)

    def ask(self, question: str) -> bool:
        """Loop until the answer is a yes or a no."""
        while True:
            response = self.input_fn(f"{question} [y/n] ").strip()
            if _YES.match(response):
                return True
            if _NO.match(response):
                return False
            self.output_fn(RETRY_MESSAGE)

    def choose(self, message: str, choices: Sequence[str]) -> str:
        """Numbered menu; an empty answer picks the first choice."""
        if not choices:
            raise ValueError("choose() needs at least one choice")
        while True:
            self.output_fn(message)
            self.output_fn("Choose one of the following:")
            for i, choice in enumerate(choices):
                self.output_fn(f"  {i}: {choice}")
            response = self.input_fn("What is your choice? [0] ").strip()
            if response == "":
                return choices[0]
            if response.isdigit() and int(response) < len(choices):
                return choices[int(response)]
            self.output_fn(RETRY_MESSAGE)

    def prompt_fields(self, fields: Sequence[str]) -> dict[str, str]:
        """One prompt per field, answers kept verbatim apart from the line end."""
        pad = " " * self.indent
        return {field: self.input_fn(f"{pad}{field}: ").rstrip("\r\n") for field in fields}

    def close(self) -> None:
        pass


class TerminalPrompter(Prompter):
    """Reads answers from the controlling terminal instead of stdin.

    Used when stdin already carried the node list.
    """

    def __init__(self, handle: IO[str], output_fn: Callable[[str], None] = print, indent: int = 4):
        self.handle = handle
        super().__init__(input_fn=self._readline, output_fn=output_fn, indent=indent)

    def _readline(self, prompt: str) -> str:
        sys.stdout.write(prompt)
        sys.stdout.flush()
        line = self.handle.readline()
        if not line:
            raise EOFError(f"terminal closed while waiting for an answer to '{prompt.strip()}'")
        return line.rstrip("\r\n")

    def close(self) -> None:
        self.handle.close()


def open_terminal(path: str | None = None) -> TerminalPrompter | None:
    """Open the controlling terminal for prompting; ``None`` when there is none."""
    path = path or os.ctermid()
    try:
        handle = open(path, encoding="utf-8")
    except OSError as e:
        logger.debug(f"No controlling terminal at {path}: {e}")
        return None
    return TerminalPrompter(handle)
