"""Tests for the Gemini-backed agents (with a stubbed model)."""

import asyncio
import json
from datetime import date

from gerencie.agents import (
    ADVICE_ERROR,
    ADVICE_UNAVAILABLE,
    AdvisorAgent,
    TransactionAgent,
)
from gerencie.models.entities import Mode, TransactionType
from gerencie.models.finance import MediaPayload
from tests.helpers.gemini_stub import FakeGeminiModel


def _json(**fields) -> str:
    return json.dumps(fields)


class TestTransactionAgentPrompt:
    """Tests for prompt and request construction."""

    def test_prompt_contains_date_mode_and_text(self):
        agent = TransactionAgent(model=FakeGeminiModel())
        prompt = agent.build_prompt("I spent 50 at the market", None, Mode.BUSINESS, today=date(2024, 5, 1))
        assert "2024-05-01" in prompt
        assert "Business" in prompt
        assert 'User text input: "I spent 50 at the market"' in prompt
        assert "Food, Transport, Leisure, Home, Health, Salary, Sales, Other" in prompt

    def test_audio_without_text_adds_audio_note(self):
        agent = TransactionAgent(model=FakeGeminiModel())
        media = MediaPayload(data=b"voice", mime_type="audio/webm")
        prompt = agent.build_prompt("", media, Mode.PERSONAL)
        assert "audio file sent by the user" in prompt
        assert "User text input" not in prompt

    def test_media_part_goes_first(self):
        agent = TransactionAgent(model=FakeGeminiModel())
        media = MediaPayload(data=b"jpeg-bytes", mime_type="image/jpeg")
        contents = agent.build_contents("", media, Mode.PERSONAL)
        assert contents[0] == {"mime_type": "image/jpeg", "data": b"jpeg-bytes"}
        assert isinstance(contents[1], str)
        assert len(contents) == 2

    def test_text_only_sends_just_the_prompt(self):
        agent = TransactionAgent(model=FakeGeminiModel())
        contents = agent.build_contents("Uber 20", None, Mode.PERSONAL)
        assert len(contents) == 1


class TestTransactionAgentParsing:
    """Tests for accepting or rejecting model output."""

    def test_accepts_complete_answer(self):
        agent = TransactionAgent(model=FakeGeminiModel())
        result = agent.parse_response(_json(
            description="Market", amount=50, type="expense", category="Food", date="2024-05-01",
        ))
        assert result.description == "Market"
        assert result.amount == 50
        assert result.type == TransactionType.EXPENSE
        assert result.date == date(2024, 5, 1)

    def test_accepts_json_wrapped_in_markdown(self):
        agent = TransactionAgent(model=FakeGeminiModel())
        text = "```json\n" + _json(description="Salary", amount=1000, type="income") + "\n```"
        result = agent.parse_response(text)
        assert result.type == TransactionType.INCOME
        assert result.category == "Other"

    def test_rejects_zero_amount(self):
        agent = TransactionAgent(model=FakeGeminiModel())
        assert agent.parse_response(_json(description="Nothing", amount=0, type="expense")) is None

    def test_rejects_missing_description(self):
        agent = TransactionAgent(model=FakeGeminiModel())
        assert agent.parse_response(_json(amount=10, type="expense")) is None

    def test_rejects_invalid_json(self):
        agent = TransactionAgent(model=FakeGeminiModel())
        assert agent.parse_response("{description: Market, amount: }") is None
        assert agent.parse_response("I could not find a transaction") is None
        assert agent.parse_response("") is None

    def test_rejects_unknown_type(self):
        agent = TransactionAgent(model=FakeGeminiModel())
        assert agent.parse_response(_json(description="Gift", amount=10, type="transfer")) is None


class TestTransactionAgentRequests:
    """Tests for process_message end to end."""

    def test_process_message(self):
        model = FakeGeminiModel(text=_json(description="Uber", amount=23.5, type="expense", category="Transport"))
        agent = TransactionAgent(model=model)

        result = asyncio.run(agent.process_message("Uber 23.50", mode=Mode.PERSONAL))

        assert result.category == "Transport"
        assert len(model.calls) == 1
        assert "Uber 23.50" in model.last_prompt

    def test_api_error_returns_none(self):
        agent = TransactionAgent(model=FakeGeminiModel(error=RuntimeError("quota exceeded")))
        assert asyncio.run(agent.process_message("Uber 20")) is None

    def test_empty_response_returns_none(self):
        agent = TransactionAgent(model=FakeGeminiModel(text=None))
        assert asyncio.run(agent.process_message("Uber 20")) is None


class TestAdvisorAgent:
    """Tests for financial advice."""

    DATA = {"income": 1000.0, "expenses": 400.0, "balance": 600.0}

    def test_returns_model_text(self):
        model = FakeGeminiModel(text="  Keep saving 20% of your income.  ")
        advice = asyncio.run(AdvisorAgent(model=model).get_financial_advice(Mode.PERSONAL, self.DATA))
        assert advice == "Keep saving 20% of your income."
        assert '"balance": 600.0' in model.last_prompt
        assert "Personal" in model.last_prompt

    def test_empty_response_placeholder(self):
        advice = asyncio.run(
            AdvisorAgent(model=FakeGeminiModel(text="")).get_financial_advice(Mode.PERSONAL, self.DATA)
        )
        assert advice == ADVICE_UNAVAILABLE

    def test_error_placeholder(self):
        model = FakeGeminiModel(error=RuntimeError("API key not valid"))
        advice = asyncio.run(AdvisorAgent(model=model).get_financial_advice(Mode.BUSINESS, self.DATA))
        assert advice == ADVICE_ERROR
