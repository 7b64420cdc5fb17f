"""Tiny terminal UI helpers (prompt_toolkit-based).

This module contains small, focused helpers for interactive terminal prompts
that we want to keep decoupled from the categorization workflow so they're
easy to test in isolation.
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

# ----------------------------------------------------------------------------
# Category selector
# ----------------------------------------------------------------------------


class CreateCategoryRequest:
    """Return type for the creation path: carries the typed candidate name."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:  # pragma: no cover - trivial repr
        return f"CreateCategoryRequest(name={self.name!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, CreateCategoryRequest) and other.name == self.name

    def __hash__(self) -> int:  # pragma: no cover - trivial hash
        return hash(self.name)


class _PrefixSuggest(AutoSuggest):
    """Grey inline completion of the first catalog name starting with the input."""

    def __init__(self, vocab: Sequence[str]) -> None:
        self._vocab = list(vocab)

    def get_suggestion(self, buffer, document):
        text = document.text
        if not text:
            return None
        cand = _best_prefix_match(self._vocab, text)
        if cand is None:
            return None
        return Suggestion(cand[len(text) :])


def _best_prefix_match(vocab: Sequence[str], text: str) -> str | None:
    """First name that strictly extends ``text`` (case-insensitive), unless
    ``text`` already names a category exactly."""

    if not text:
        return None
    lower = text.lower()
    if any(w.lower() == lower for w in vocab):
        return None
    for w in vocab:
        if w.lower().startswith(lower):
            return w
    return None


def select_category(
    categories: Sequence[str] | Iterable[str],
    *,
    default: str | None = None,
    message: str = "Category (Enter to accept, empty to skip): ",
    session: PromptSession | None = None,
    allow_create: bool = False,
) -> str | CreateCategoryRequest | None:
    """Prompt the user to choose one category from ``categories``.

    Returns the catalog spelling of the chosen name, ``None`` when the buffer
    is submitted empty (skip), or a :class:`CreateCategoryRequest` when
    ``allow_create`` is set and the typed name is not in the catalog. Without
    ``allow_create`` unknown names are rejected inline.
    """

    words = list(dict.fromkeys(categories))
    by_lower = {w.lower(): w for w in words}

    completer = WordCompleter(words, ignore_case=True, match_middle=True, sentence=True)

    kb = KeyBindings()

    @kb.add("tab", eager=True)
    def _(event) -> None:  # pragma: no cover - integration path
        b = event.app.current_buffer
        cand = _best_prefix_match(words, b.document.text)
        if cand:
            b.insert_text(cand[len(b.document.text) :])
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
            cand = _best_prefix_match(words, b.document.text)
            if cand:
                b.insert_text(cand[len(b.document.text) :])
        b.validate_and_handle()

    class _KnownName(Validator):
        def validate(self, document) -> None:
            text = normalize_name(document.text)
            if not text or text.lower() in by_lower:
                return
            if allow_create:
                v = _validate_name(text)
                if not v.ok:
                    raise ValidationError(message=v.reason or "Invalid name")
                return
            raise ValidationError(message=f"Unknown category: {text}")

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
        completer=completer,
        default=default or "",
        key_bindings=kb,
        auto_suggest=_PrefixSuggest(words),
        validator=_KnownName(),
        validate_while_typing=False,
        style=Style.from_dict({"auto-suggestion": "fg:#888888"}),
    )

    chosen = normalize_name(result or "")
    if not chosen:
        return None
    if chosen.lower() in by_lower:
        return by_lower[chosen.lower()]
    return CreateCategoryRequest(chosen)


def prompt_new_category_name(
    *,
    initial: str = "",
    session: PromptSession | None = None,
    message: str = "New category name (Enter to save, Esc or Ctrl+C to cancel): ",
) -> str | None:
    """Collect a new category name with inline validation.

    Returns the normalized name, or ``None`` when canceled via Esc or Ctrl+C.
    """

    kb = KeyBindings()

    @kb.add("escape")
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result=None)

    @kb.add("c-c", eager=True)
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result=None)

    class _V(Validator):
        def validate(self, document) -> None:
            v = _validate_name(document.text)
            if not v.ok:
                raise ValidationError(message=v.reason or "Invalid name")

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
        default=initial,
        validator=_V(),
        validate_while_typing=False,
        key_bindings=kb,
    )
    return normalize_name(result) if result is not None else None


__all__ = ["CreateCategoryRequest", "prompt_new_category_name", "select_category"]
