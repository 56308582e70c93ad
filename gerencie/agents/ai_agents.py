"""
AI Agents for Gerencie

Two thin agents over Google Gemini:

1. TRANSACTION AGENT:
   - CAN: Read a text message, a receipt photo or a voice note and propose
     ONE transaction (description, amount, type, category, date)
   - CANNOT: Persist anything; the agent flow does that
   - Returns None when the input does not describe a transaction

2. ADVISOR AGENT:
   - CAN: Turn dashboard totals into a short piece of advice
   - Returns placeholder text on failure, never raises

LLM failures are logged and surface only as None / placeholder text.
"""

import json
from datetime import date
from typing import Any, Optional

import google.generativeai as genai
import structlog
from pydantic import ValidationError

from gerencie.config import get_settings
from gerencie.models.entities import Mode
from gerencie.models.finance import ExtractedTransaction, MediaPayload

logger = structlog.get_logger(__name__)

SUGGESTED_CATEGORIES = [
    "Food",
    "Transport",
    "Leisure",
    "Home",
    "Health",
    "Salary",
    "Sales",
    "Other",
]

ADVICE_UNAVAILABLE = "Could not generate an analysis right now."
ADVICE_ERROR = "Error connecting to the financial assistant. Check your API key."


def _build_model(max_output_tokens: Optional[int] = None, json_output: bool = False):
    """Configure Google Generative AI and return a model."""
    settings = get_settings().gemini
    genai.configure(api_key=settings.api_key)
    generation_config: dict[str, Any] = {
        "temperature": settings.temperature,
        "max_output_tokens": max_output_tokens or settings.max_tokens,
    }
    if json_output:
        generation_config["response_mime_type"] = "application/json"
    return genai.GenerativeModel(
        model_name=settings.model_name,
        generation_config=generation_config,
    )


def _response_text(response) -> str:
    # .text raises ValueError when the candidate has no text part
    try:
        return (response.text or "").strip()
    except ValueError:
        return ""


def _parse_json_object(text: str) -> Optional[dict]:
    """Find the outermost JSON object in a response."""
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        return None
    data = json.loads(text[start:end])
    return data if isinstance(data, dict) else None


class TransactionAgent:
    """
    Extracts a transaction from text, an image or an audio clip.

    RESPONSIBILITIES:
    - Build the prompt (today's date, current mode, instructions per input)
    - Send media as an inline part ahead of the prompt
    - Accept the answer only if it has an amount and a description
    """

    def __init__(self, model=None):
        """
        Args:
            model: Anything with an async `generate_content_async`.
                   If None, a Gemini model is built from settings.
        """
        self._model = model or _build_model(json_output=True)

    def build_prompt(
        self,
        message: str,
        media: Optional[MediaPayload],
        mode: Mode,
        today: Optional[date] = None,
    ) -> str:
        today = today or date.today()

        prompt = f"""You are the smart financial assistant (Agent) of the "Gerencie" app.
Your task is to analyze the user's input (text, a receipt image or audio) and extract the data to create ONE financial transaction.

Today's date: {today.isoformat()}
Current mode: {mode.value}

Specific instructions:
1. If there is AUDIO: the audio has priority. Transcribe it and extract the intent.
   - "I spent 50 at the market" -> expense, 50, Market, category: Food.
   - "I received 1000 today" -> income, 1000, Payment received, category: Salary.
2. If there is an IMAGE: read the receipt to find the total, the date and the merchant.
3. If there is only TEXT: extract from the text.

Required fields:
- amount (plain number)
- type ("income" or "expense")
- description (short summary)
- category (suggest a fitting one: {", ".join(SUGGESTED_CATEGORIES)})
- date (YYYY-MM-DD, use today if not specified)

IMPORTANT: Return ONLY a valid JSON object. No markdown. No explanations.

Expected JSON format:
{{"description": "string", "amount": 0, "type": "income" | "expense", "category": "string", "date": "YYYY-MM-DD"}}"""

        if message:
            prompt += f'\nUser text input: "{message}"'
        elif media and media.is_audio:
            prompt += "\n(This is an audio file sent by the user. Analyze the spoken content.)"

        return prompt

    def build_contents(
        self,
        message: str,
        media: Optional[MediaPayload],
        mode: Mode,
        today: Optional[date] = None,
    ) -> list:
        """Media part first, then the prompt."""
        contents: list = []
        if media:
            contents.append({"mime_type": media.mime_type, "data": media.data})
        contents.append(self.build_prompt(message, media, mode, today))
        return contents

    def parse_response(self, text: str) -> Optional[ExtractedTransaction]:
        """
        Turn the model's text into an ExtractedTransaction.

        Returns None unless there is a JSON object with a truthy amount
        and description.
        """
        if not text:
            return None
        try:
            data = _parse_json_object(text)
        except json.JSONDecodeError:
            logger.error("agent_response_not_json", response=text[:500])
            return None

        if not data or not data.get("amount") or not data.get("description"):
            logger.info("agent_response_incomplete", response=text[:500])
            return None

        try:
            return ExtractedTransaction(**data)
        except ValidationError as e:
            logger.error("agent_response_invalid", error=str(e), response=text[:500])
            return None

    async def process_message(
        self,
        message: str,
        media: Optional[MediaPayload] = None,
        mode: Mode = Mode.PERSONAL,
    ) -> Optional[ExtractedTransaction]:
        """
        Ask the model to extract a transaction.

        Returns None if nothing usable came back or the call failed.
        """
        contents = self.build_contents(message, media, mode)
        try:
            response = await self._model.generate_content_async(contents)
        except Exception as e:
            logger.error("agent_request_failed", error=str(e))
            return None

        return self.parse_response(_response_text(response))


class AdvisorAgent:
    """Short financial advice from the dashboard numbers."""

    def __init__(self, model=None):
        self._model = model or _build_model(max_output_tokens=256)

    def build_prompt(self, mode: Mode, data: dict[str, Any]) -> str:
        payload = json.dumps(data, indent=2, default=str, ensure_ascii=False)
        return f"""Act as a senior financial advisor for the "Gerencie" platform.

Analyze the following data from the {mode.value} dashboard:
{payload}

Give short, direct and actionable feedback (at most 3 sentences) about the current financial health and one suggestion for improvement.
Use a professional but encouraging tone."""

    async def get_financial_advice(self, mode: Mode, data: dict[str, Any]) -> str:
        try:
            response = await self._model.generate_content_async(
                self.build_prompt(mode, data)
            )
        except Exception as e:
            logger.error("advice_request_failed", error=str(e))
            return ADVICE_ERROR

        return _response_text(response) or ADVICE_UNAVAILABLE
