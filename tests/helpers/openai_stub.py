"""Test helpers to stub the OpenAI Responses client used by summarize.py.

The stub records each call's kwargs and returns a fixed text payload, either
as ``output_text`` or nested under ``output[0].content[0].text`` to exercise
both SDK response shapes. Passing ``error`` makes every call raise it.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any


class OpenAIStub:
    """Minimal stub matching the ``openai.OpenAI`` shape used by ``summarize.py``."""

    def __init__(
        self,
        text: str | None = "Spending looks healthy.",
        *,
        nested: bool = False,
        error: BaseException | None = None,
        calls_out: list[dict[str, Any]] | None = None,
    ) -> None:
        self._text = text
        self._nested = nested
        self._error = error
        self._calls = calls_out if calls_out is not None else []

        outer = self

        class _Responses:
            def create(self, **kwargs):
                outer._calls.append(kwargs)
                if outer._error is not None:
                    raise outer._error
                if outer._nested:
                    content = [SimpleNamespace(text=outer._text)]
                    return SimpleNamespace(output_text=None, output=[SimpleNamespace(content=content)])
                return SimpleNamespace(output_text=outer._text, output=[])

        self.responses = _Responses()

    # Expose the captured calls list for assertions
    @property
    def calls(self) -> list[dict[str, Any]]:
        return self._calls
