"""Spending analysis via the OpenAI Responses API.

A single request per analysis: the transactions are reduced to a
:class:`~sms_ledger.models.SpendingSummary`, rendered into a prompt and sent
to the model. There is no retry loop; a failed call surfaces as
:class:`~sms_ledger.errors.SummarizationError` and the caller decides whether
to try again.
"""

from __future__ import annotations

import os
import time
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from openai import OpenAI

from . import prompting
from .aggregation import summarize
from .errors import SummarizationError
from .logging_setup import get_logger
from .models import SpendingSummary, Transaction

_MODEL_ENV = "SMS_LEDGER_MODEL"
_DEFAULT_MODEL = "gpt-5"

_logger = get_logger("sms_ledger.summarize")


@dataclass(frozen=True, slots=True)
class SpendingAnalysis:
    summary: SpendingSummary
    prompt: str
    text: str


def _resolve_model(model: str | None) -> str:
    return model or os.getenv(_MODEL_ENV) or _DEFAULT_MODEL


def _create_client() -> OpenAI:
    return OpenAI()


def _extract_response_text(resp: Any) -> str:
    """Return the main text payload of a Responses SDK result.

    Prefer ``resp.output_text``; fall back to ``resp.output[0].content[0].text``.
    Raises ``ValueError`` when no non-empty text can be located.
    """

    text: str | None = getattr(resp, "output_text", None)
    if not text:
        try:
            first = resp.output[0] if getattr(resp, "output", None) else None
            content = getattr(first, "content", None)
            if content and len(content) > 0:
                txt_obj = getattr(content[0], "text", None)
                if isinstance(txt_obj, str):
                    text = txt_obj
                else:
                    # Some SDKs expose text as an object with a ``value`` string.
                    maybe_val = getattr(txt_obj, "value", None)
                    if isinstance(maybe_val, str):
                        text = maybe_val
        except Exception:  # noqa: BLE001 - tolerate SDK shape differences
            text = None
    if not text or not isinstance(text, str) or not text.strip():
        raise ValueError("Unexpected Responses API shape; unable to locate text output")
    return text.strip()


def analyze_spending(
    transactions: Iterable[Transaction],
    *,
    client: Any | None = None,
    model: str | None = None,
) -> SpendingAnalysis:
    """Summarize ``transactions`` and ask the model for an analysis.

    Parameters
    ----------
    transactions:
        The (already filtered) transactions to analyze. Must be non-empty.
    client:
        Object exposing ``responses.create``; defaults to ``openai.OpenAI()``.
    model:
        Model name; defaults to ``SMS_LEDGER_MODEL`` or ``gpt-5``.

    Raises
    ------
    ValueError
        When there are no transactions to analyze.
    SummarizationError
        When the call fails or the response carries no text.
    """

    items = list(transactions)
    if not items:
        raise ValueError("No transactions to analyze")

    summary = summarize(items)
    prompt = prompting.build_analysis_prompt(summary)
    resolved = _resolve_model(model)

    _logger.info(
        "analyze_spending:request model=%s transactions=%d categories=%d",
        resolved,
        summary.transaction_count,
        len(summary.category_totals),
    )
    t0 = time.perf_counter()
    try:
        api = client if client is not None else _create_client()
        resp = api.responses.create(
            model=resolved,
            instructions=prompting.build_system_instructions(),
            input=prompt,
        )
        text = _extract_response_text(resp)
    except Exception as e:  # noqa: BLE001
        dt_ms = (time.perf_counter() - t0) * 1000.0
        _logger.error(
            "analyze_spending:failed model=%s latency_ms=%.2f error=%s",
            resolved,
            dt_ms,
            e.__class__.__name__,
        )
        raise SummarizationError(f"Spending analysis failed: {e}") from e

    dt_ms = (time.perf_counter() - t0) * 1000.0
    _logger.info(
        "analyze_spending:done model=%s latency_ms=%.2f chars=%d", resolved, dt_ms, len(text)
    )
    return SpendingAnalysis(summary=summary, prompt=prompt, text=text)


__all__ = ["SpendingAnalysis", "analyze_spending"]
