"""Terminal prompts for the sign-up form (prompt_toolkit-based).

Kept apart from the controller so the prompts can be driven from a pipe in
tests. The prompts are async because they share the event loop with the
background refresh.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Literal, TypeAlias

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import DummyCompleter, WordCompleter

from .models import SignupForm

Action: TypeAlias = Literal["add", "refresh", "quit"]

_ACTIONS: dict[str, Action] = {
    "": "add",
    "a": "add",
    "ajouter": "add",
    "r": "refresh",
    "rafraichir": "refresh",
    "rafraîchir": "refresh",
    "q": "quit",
    "quitter": "quit",
}

ACTION_MESSAGE = "[a]jouter, [r]afraîchir, [q]uitter (Entrée = ajouter) : "


async def prompt_action(session: PromptSession | None = None) -> Action:
    """Ask what to do next; EOF, Ctrl-C and unknown input map to sensible defaults."""

    session = session or PromptSession()
    try:
        answer = await session.prompt_async(ACTION_MESSAGE, completer=DummyCompleter())
    except (EOFError, KeyboardInterrupt):
        return "quit"
    return _ACTIONS.get(answer.strip().lower(), "add")


async def prompt_signup(
    form: SignupForm,
    *,
    known_items: Iterable[str] = (),
    session: PromptSession | None = None,
) -> SignupForm | None:
    """Prompt for each form field with the current values pre-filled.

    Returns the edited form, or ``None`` when the user aborts (Ctrl-C/Ctrl-D).
    Values are returned as typed; validation is the controller's job.
    """

    session = session or PromptSession()
    items = sorted({i for i in known_items if i.strip()})
    no_completion = DummyCompleter()
    item_completer = (
        WordCompleter(items, ignore_case=True, match_middle=True) if items else no_completion
    )

    try:
        name = await session.prompt_async(
            "Ton nom : ", default=form.name, completer=no_completion
        )
        item = await session.prompt_async(
            "Tu ramènes quoi : ", default=form.item, completer=item_completer
        )
        qty = await session.prompt_async("Quantité : ", default=form.qty, completer=no_completion)
        note = await session.prompt_async("Note : ", default=form.note, completer=no_completion)
    except (EOFError, KeyboardInterrupt):
        return None
    return SignupForm(name=name, item=item, qty=qty, note=note)


__all__ = ["ACTION_MESSAGE", "prompt_action", "prompt_signup"]
