"""Interactive prompt primitives used by wizard steps.

Each primitive wraps a blocking ``rich.prompt`` call and runs it in a worker
thread so wizard steps can simply ``await`` it.  End-of-input and Ctrl-C are
turned into :class:`PromptCancelled`, which steps map to the ``cancel``
navigation direction.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from typing import Any, Optional, TypeVar

from rich.prompt import Confirm, IntPrompt, Prompt

from dotclaude.utils import console
from dotclaude.wizard.types import WizardChoice

T = TypeVar("T")


class PromptCancelled(Exception):
    """Raised when the user aborts an interactive prompt."""


async def _ask(func: Callable[[], T]) -> T:
    try:
        return await asyncio.to_thread(func)
    except (EOFError, KeyboardInterrupt) as exc:
        raise PromptCancelled("Prompt cancelled by user") from exc


def _print_choices(message: str, choices: Sequence[WizardChoice]) -> None:
    console.print(f"\n[bold]{message}[/bold]")
    for number, choice in enumerate(choices, start=1):
        suffix = f" [dim]- {choice.description}[/dim]" if choice.description else ""
        console.print(f"  [cyan]{number}[/cyan]. {choice.name}{suffix}")


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------

async def text(
    message: str,
    default: Optional[str] = None,
    validate: Optional[Callable[[str], bool | str]] = None,
) -> str:
    """Ask for free text, re-asking while *validate* rejects the answer."""
    while True:
        answer = await _ask(
            lambda: Prompt.ask(message, default=default or "", console=console)
        )
        answer = answer.strip()
        if validate is None:
            return answer
        outcome = validate(answer)
        if outcome is True:
            return answer
        console.print(f"[red]{outcome if isinstance(outcome, str) else 'Invalid value'}[/red]")


async def confirm(message: str, default: bool = True) -> bool:
    return await _ask(lambda: Confirm.ask(message, default=default, console=console))


async def select(
    message: str,
    choices: Sequence[WizardChoice],
    default: Any = None,
) -> Any:
    """Show a numbered list and return the chosen option's ``value``."""
    if not choices:
        raise ValueError("select() needs at least one choice")
    _print_choices(message, choices)
    default_number = 1
    for number, choice in enumerate(choices, start=1):
        if choice.value == default:
            default_number = number
            break
    numbers = [str(n) for n in range(1, len(choices) + 1)]
    picked = await _ask(
        lambda: IntPrompt.ask(
            "Choice", choices=numbers, default=default_number,
            show_choices=False, console=console,
        )
    )
    return choices[picked - 1].value


def parse_selection(answer: str, count: int) -> list[int]:
    """Parse ``"1, 3 4"`` into zero-based indexes, ignoring anything out of range."""
    indexes: list[int] = []
    for token in answer.replace(",", " ").split():
        if not token.isdigit():
            continue
        index = int(token) - 1
        if 0 <= index < count and index not in indexes:
            indexes.append(index)
    return indexes


async def checkbox(
    message: str,
    choices: Sequence[WizardChoice],
    default: Optional[Sequence[Any]] = None,
) -> list[Any]:
    """Multi-select: the user types the numbers of every option to keep."""
    _print_choices(message, choices)
    selected = set(default or ())
    default_answer = " ".join(
        str(number) for number, choice in enumerate(choices, start=1)
        if choice.value in selected
    )
    answer = await _ask(
        lambda: Prompt.ask(
            "Numbers (space or comma separated, empty for none)",
            default=default_answer, console=console,
        )
    )
    return [choices[i].value for i in parse_selection(answer, len(choices))]
