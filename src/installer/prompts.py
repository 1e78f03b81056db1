"""Validated interactive prompts.

A prompt cycles Prompting -> Validating -> Accepted. A validation failure
prints the validator's message and starts over with a fresh answer. There
is no retry limit; the loop ends on valid input or when the operator
interrupts the process.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Tuple

import typer

from core.exceptions import ValidationFailure
from core.logging_config import get_logger
from installer.output import Output

LOGGER = get_logger(__name__)

# (question text, hide input) -> raw answer, "" when the operator just hits enter
Reader = Callable[[str, bool], str]
Validator = Callable[[Any], Any]


def typer_reader(question: str, hide_input: bool) -> str:
    """Read one answer from the terminal."""
    return typer.prompt(question, default="", show_default=False, hide_input=hide_input)


@dataclass(frozen=True)
class PromptSpec:
    """Everything needed to ask one question."""

    question: str
    choices: Tuple[str, ...] = ()
    validator: Optional[Validator] = None
    default: Any = None
    secret: bool = False
    enforce_choices: bool = False


class Prompter:
    """Asks questions until the answer passes validation."""

    def __init__(self, reader: Optional[Reader] = None, output: Optional[Output] = None) -> None:
        self.reader = reader or typer_reader
        self.output = output or Output()

    def ask(self, spec: PromptSpec) -> Any:
        """Ask until accepted and return the (possibly transformed) answer."""
        question = self._render(spec)
        while True:
            raw = self.reader(question, spec.secret)
            # Secrets are kept exactly as typed
            text = raw if spec.secret else raw.strip()
            answer: Any = text if raw.strip() else spec.default

            if spec.validator is None:
                return "" if answer is None else answer

            try:
                return spec.validator(answer)
            except ValidationFailure as exc:
                LOGGER.debug("Rejected answer for %r: %s", spec.question, exc)
                self.output.error(str(exc))

    def question(
        self,
        question: str,
        default: Any = None,
        validator: Optional[Validator] = None,
        choices: Sequence[str] = (),
    ) -> Any:
        """Free-text question; choices are suggestions only."""
        return self.ask(PromptSpec(question, tuple(choices), validator, default))

    def secret(self, question: str) -> str:
        """Masked question; an empty answer is allowed."""
        return self.ask(PromptSpec(question, secret=True))

    def choose(self, question: str, choices: Sequence[str], default_index: Optional[int] = 0) -> str:
        """
        Ask the operator to pick one of the given choices.

        The answer may be the choice itself or its index in the list.

        Raises:
            ValueError: If there is nothing to choose from.
        """
        options = tuple(choices)
        if not options:
            raise ValueError(f"No choices available for {question!r}")
        default = None
        if options and default_index is not None and 0 <= default_index < len(options):
            default = options[default_index]

        def pick(answer: Any) -> str:
            value = "" if answer is None else str(answer).strip()
            if value in options:
                return value
            if value.isdigit() and int(value) < len(options):
                return options[int(value)]
            raise ValidationFailure(f'Value "{value}" is invalid')

        return self.ask(PromptSpec(question, options, pick, default, enforce_choices=True))

    @staticmethod
    def _render(spec: PromptSpec) -> str:
        text = spec.question
        if spec.default is not None and not spec.secret:
            text += f" [{spec.default}]"

        if spec.enforce_choices and spec.choices:
            listing = "\n".join(f"  [{index}] {choice}" for index, choice in enumerate(spec.choices))
            return f"{text}\n{listing}\n"
        if spec.choices:
            text += f" (e.g. {', '.join(spec.choices)})"
        return text
