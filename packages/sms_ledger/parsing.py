"""Message and batch parsing.

Public API:
    - :func:`parse_line`
    - :func:`parse_batch`

Parsing is permissive: a line that does not match the provider's template
(headers, footers, unrelated notifications, malformed numbers or dates) is
dropped silently. Deciding whether an empty result is a user-facing failure is
left to the caller (see :mod:`sms_ledger.workflows.import_flow`).
"""

from __future__ import annotations

from .formats import DEFAULT_PROVIDER, LineFormat, get_line_format
from .logging_setup import get_logger
from .models import Transaction

_logger = get_logger("sms_ledger.parsing")


def parse_line(line: str, *, line_format: LineFormat | None = None) -> Transaction | None:
    """Parse one trimmed line into a transaction, or ``None`` when it does not match.

    ``line_format`` defaults to the ``mpesa`` template.
    """

    fmt = line_format or get_line_format(DEFAULT_PROVIDER)
    return fmt.match(line)


def iter_candidate_lines(text: str) -> list[str]:
    """Split ``text`` on line boundaries, trim, and drop blank lines."""

    return [s for s in (raw.strip() for raw in text.splitlines()) if s]


def parse_batch(
    text: str,
    *,
    provider: str = DEFAULT_PROVIDER,
    line_format: LineFormat | None = None,
) -> list[Transaction]:
    """Parse every non-blank line of ``text`` and keep the matches in source order.

    Parameters
    ----------
    text:
        A pasted block of notifications, one per line.
    provider:
        Registered provider name used to pick the line format.
    line_format:
        Explicit format; takes precedence over ``provider``.

    Returns
    -------
    list[Transaction]
        Possibly empty; never longer than the number of non-blank lines.
    """

    fmt = line_format or get_line_format(provider)
    lines = iter_candidate_lines(text)

    results: list[Transaction] = []
    for lineno, line in enumerate(lines, start=1):
        tx = fmt.match(line)
        if tx is None:
            _logger.debug("parse_batch:skip line=%d format=%s", lineno, fmt.name)
            continue
        results.append(tx)

    _logger.info(
        "parse_batch:done format=%s lines=%d matched=%d dropped=%d",
        fmt.name,
        len(lines),
        len(results),
        len(lines) - len(results),
    )
    return results


__all__ = ["iter_candidate_lines", "parse_batch", "parse_line"]
