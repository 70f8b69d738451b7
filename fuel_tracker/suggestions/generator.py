"""
External Suggestion Generators

CRITICAL BOUNDARIES for any generator:
- CAN: Propose extra suggestions phrased for the user's situation
- CANNOT: Change the ledger or see individual expenses
- CANNOT: Block the engine. The caller enforces a timeout and falls back
  to the rule set when a generator fails.

The LLM only sees the condensed FinancialContext and the category
breakdown. Proposals are parsed into SuggestionInput and anything that
does not fit the schema is discarded.
"""

import json
from abc import ABC, abstractmethod
from typing import Optional

import google.generativeai as genai
import structlog
from pydantic import ValidationError

from fuel_tracker.config import GeminiSettings, get_settings
from fuel_tracker.models.metrics import FinancialContext, SpendingAnalytics
from fuel_tracker.models.suggestion import (
    SuggestionAction,
    SuggestionInput,
    SuggestionType,
)


logger = structlog.get_logger(__name__)


class SuggestionGenerationError(Exception):
    """The external generator could not produce suggestions."""
    pass


class ExternalSuggestionGenerator(ABC):
    """Source of suggestions beyond the built-in rules."""

    @abstractmethod
    async def generate(
        self,
        context: FinancialContext,
        analytics: Optional[SpendingAnalytics] = None,
    ) -> list[SuggestionInput]:
        """
        Propose suggestions for the given context.

        Raises:
            SuggestionGenerationError: If no proposal could be produced
        """
        pass


def parse_suggestions(text: str) -> list[SuggestionInput]:
    """
    Extract suggestions from an LLM reply.

    Expects a JSON array somewhere in the text. Items that fail
    validation are skipped; a reply without any JSON array is an error.
    """
    start = text.find("[")
    end = text.rfind("]") + 1
    if start < 0 or end <= start:
        raise SuggestionGenerationError("No JSON array in response")

    try:
        items = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise SuggestionGenerationError(f"Malformed JSON in response: {e}")

    suggestions = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            suggestions.append(SuggestionInput.model_validate(item))
        except ValidationError as e:
            logger.info("external_suggestion_rejected", error=str(e))
    return suggestions


class GeminiSuggestionGenerator(ExternalSuggestionGenerator):
    """Asks Gemini for personalised suggestions."""

    def __init__(self, settings: Optional[GeminiSettings] = None):
        self._settings = settings or get_settings().gemini
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    def _build_prompt(
        self,
        context: FinancialContext,
        analytics: Optional[SpendingAnalytics],
    ) -> str:
        breakdown = "No category data"
        if analytics and analytics.category_breakdown:
            breakdown = ", ".join(
                f"{c.category.value}: {c.percentage:.0f}%"
                for c in analytics.category_breakdown[:5]
            )

        return f"""You are a personal finance coach for an Indian user tracking money as a "fuel tank".

Current situation:
- Salary: ₹{context.salary}
- Balance (fuel left): ₹{context.balance}
- Average daily spend: ₹{context.avg_daily_spend:.0f}
- Days of fuel left: {context.days_left}
- Active recurring bills: ₹{context.recurring_bills_amount}
- Spending by category: {breakdown}

Suggest at most 2 concrete actions. Respond with ONLY a JSON array, each item in this exact format:
{{"type": one of {[t.value for t in SuggestionType]},
  "title": "short title", "description": "one or two sentences",
  "action": one of {[a.value for a in SuggestionAction]},
  "priority": "low" | "normal" | "high",
  "action_amount": number or null,
  "impact": {{"money_saved": number or null, "days_gained": integer or null, "confidence_score": 0.0-1.0}}}}

Never invent income or expenses that are not listed above."""

    async def generate(
        self,
        context: FinancialContext,
        analytics: Optional[SpendingAnalytics] = None,
    ) -> list[SuggestionInput]:
        prompt = self._build_prompt(context, analytics)
        try:
            response = await self._model.generate_content_async(prompt)
            text = response.text.strip()
        except Exception as e:
            raise SuggestionGenerationError(f"Gemini request failed: {e}")

        suggestions = parse_suggestions(text)
        logger.info("external_suggestions_received", count=len(suggestions))
        return suggestions
