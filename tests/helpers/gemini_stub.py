"""Test helper to stub ``google.generativeai.GenerativeModel``.

Only the async ``generate_content_async`` call used by the agents is
provided. Every call's ``contents`` is recorded so tests can assert on the
prompt and on the order of inline media parts.
"""

from __future__ import annotations

from typing import Any, Optional


class FakeGeminiResponse:
    def __init__(self, text: Optional[str]) -> None:
        self._text = text

    @property
    def text(self) -> str:
        # The real response raises ValueError when there is no text part
        if self._text is None:
            raise ValueError("Response has no text part")
        return self._text


class FakeGeminiModel:
    """Returns ``text`` (or raises ``error``) for every request."""

    def __init__(self, text: Optional[str] = "", error: Optional[Exception] = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[Any] = []

    async def generate_content_async(self, contents: Any) -> FakeGeminiResponse:
        self.calls.append(contents)
        if self.error is not None:
            raise self.error
        return FakeGeminiResponse(self.text)

    @property
    def last_prompt(self) -> str:
        contents = self.calls[-1]
        if isinstance(contents, str):
            return contents
        return contents[-1]
