"""Split raw OCR text into indexed, trimmed, non-empty lines."""

from __future__ import annotations

from .models import RawLine


def segment_lines(text: str | None) -> tuple[RawLine, ...]:
    """Return the non-blank lines of ``text`` as :class:`RawLine` values.

    Any line break convention is accepted. Indices count only the kept lines,
    so they are contiguous from 0.
    """

    if not text:
        return ()
    kept = (ln.strip() for ln in text.splitlines())
    return tuple(RawLine(index=i, text=t) for i, t in enumerate(t for t in kept if t))


__all__ = ["segment_lines"]
