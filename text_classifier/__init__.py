"""
Text classifier - LLM-powered classification and routing of text items.
"""

from .config import ClassifierConfig, configured_outputs
from .core import TextClassifier
from .exceptions import (
    AnswerParseError,
    ClassificationError,
    ConfigurationError,
    LLMError,
    TextClassifierError,
    ValidationError,
)
from .models import (
    Category,
    CategorySourceMode,
    FallbackPolicy,
    Item,
    ItemOutcome,
    OutputBranches,
    RunMetrics,
)

__version__ = "0.1.0"
__all__ = [
    "TextClassifier",
    "ClassifierConfig",
    "configured_outputs",
    "Category",
    "CategorySourceMode",
    "FallbackPolicy",
    "Item",
    "ItemOutcome",
    "OutputBranches",
    "RunMetrics",
    "TextClassifierError",
    "ConfigurationError",
    "ValidationError",
    "LLMError",
    "AnswerParseError",
    "ClassificationError",
]
