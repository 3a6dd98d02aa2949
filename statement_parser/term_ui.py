"""Terminal prompt for picking a transaction category (prompt_toolkit-based).

Kept apart from the review flow so the prompt can be tested in isolation with
a pipe input and a dummy output.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggest, Suggestion
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.styles import Style
from prompt_toolkit.validation import ValidationError, Validator

from .categories import normalize_name
from .categories import validate_name as _validate_name


def select_category(
    options: Sequence[str] | Iterable[str],
    *,
    default: str,
    message: str = "Category (Enter to accept): ",
    session: PromptSession | None = None,
) -> str:
    """Prompt for a category, pre-filled with ``default``.

    Known options complete case-insensitively; Enter on a strict prefix
    accepts the first option it completes to. Any other text is treated as a
    custom category and must pass :func:`~statement_parser.categories.validate_name`.
    The return value is the canonical option, or the normalized custom name.
    """

    words = list(options)
    canonical = {w.lower(): w for w in words}

    def _prefix_match(text: str) -> str | None:
        lower = text.strip().lower()
        if not lower or lower in canonical:
            return None
        return next((w for w in words if w.lower().startswith(lower)), None)

    class _PrefixSuggest(AutoSuggest):
        def get_suggestion(self, buffer, document):
            cand = _prefix_match(document.text)
            if cand is None:
                return None
            return Suggestion(cand[len(document.text) :])

    class _CategoryValidator(Validator):
        def validate(self, document) -> None:
            if document.text.strip().lower() in canonical:
                return
            v = _validate_name(document.text)
            if not v.ok:
                raise ValidationError(message=v.reason or "Invalid category")

    kb = KeyBindings()

    @kb.add("tab", eager=True)
    def _(event) -> None:  # pragma: no cover - integration path
        b = event.app.current_buffer
        cand = _prefix_match(b.document.text)
        if cand is not None:
            b.text = cand
            b.cursor_position = len(cand)
        elif b.complete_state is None:
            b.start_completion(select_first=True)
        else:
            b.complete_next()

    @kb.add("enter", eager=True)
    def _(event) -> None:  # pragma: no cover - integration path
        b = event.app.current_buffer
        cs = b.complete_state
        if cs is not None and cs.current_completion is not None:
            b.apply_completion(cs.current_completion)
        else:
            cand = _prefix_match(b.document.text)
            if cand is not None:
                b.text = cand
                b.cursor_position = len(cand)
        b.validate_and_handle()

    if session is None:
        sess: PromptSession = PromptSession(key_bindings=kb)
    else:
        sess = PromptSession(
            input=getattr(session, "input", None),
            output=getattr(session, "output", None),
            key_bindings=kb,
        )

    result = sess.prompt(
        message,
        default=default,
        completer=WordCompleter(words, ignore_case=True, match_middle=True, sentence=True),
        auto_suggest=_PrefixSuggest(),
        validator=_CategoryValidator(),
        validate_while_typing=False,
        key_bindings=kb,
        style=Style.from_dict({"auto-suggestion": "fg:#888888"}),
    )

    key = result.strip().lower()
    if key in canonical:
        return canonical[key]
    return normalize_name(result)


__all__ = ["select_category"]
