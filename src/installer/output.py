"""Operator-facing console output built on typer's echo helpers."""
from __future__ import annotations

from typing import Iterable, Union

import typer

BLOCK_STYLES = {
    "error": {"fg": "white", "bg": "red"},
    "question": {"fg": "black", "bg": "cyan"},
    "warning": {"fg": "black", "bg": "yellow"},
}


class Output:
    """Writes lines, coloured messages and padded blocks to the terminal."""

    def line(self, message: str = "") -> None:
        typer.echo(message)

    def info(self, message: str) -> None:
        typer.secho(message, fg="green")

    def comment(self, message: str) -> None:
        typer.secho(message, fg="yellow")

    def error(self, message: str) -> None:
        typer.secho(message, fg="red")

    def block(self, messages: Union[str, Iterable[str]], style: str = "error") -> None:
        """
        Print messages as a padded, coloured block.

        Blank lines are added above and below, and every row is padded to
        the width of the longest message so the background forms a box.
        """
        if isinstance(messages, str):
            messages = [messages]

        rows = [""] + [message.strip() for message in messages] + [""]
        width = max(len(row) for row in rows) + 4
        colours = BLOCK_STYLES.get(style, BLOCK_STYLES["error"])
        for row in rows:
            typer.secho(f"  {row}".ljust(width), **colours)

    def header(self, title: str) -> None:
        self.block(title, "question")
