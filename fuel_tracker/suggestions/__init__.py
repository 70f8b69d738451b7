"""
Suggestions Package

Rule-based and external suggestion generation, ranking, the suggestion
book and the actions taken when a suggestion is applied.
"""

from fuel_tracker.suggestions.actions import ActionPlan, plan_action
from fuel_tracker.suggestions.book import SuggestionBook
from fuel_tracker.suggestions.engine import (
    CATEGORY_TIPS,
    DEFAULT_TIPS,
    SuggestionEngine,
)
from fuel_tracker.suggestions.generator import (
    ExternalSuggestionGenerator,
    GeminiSuggestionGenerator,
    SuggestionGenerationError,
    parse_suggestions,
)

__all__ = [
    # Engine
    "CATEGORY_TIPS",
    "DEFAULT_TIPS",
    "SuggestionEngine",
    # Book
    "SuggestionBook",
    # Actions
    "ActionPlan",
    "plan_action",
    # Generators
    "ExternalSuggestionGenerator",
    "GeminiSuggestionGenerator",
    "SuggestionGenerationError",
    "parse_suggestions",
]
