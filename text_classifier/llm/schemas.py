"""
Pydantic schemas for structured LLM interactions.

The classification answer schema is not static: its fields are the
category names resolved for a run, so it is built per execution with
``pydantic.create_model``. Category names are arbitrary strings, so each
field gets a positional attribute name and carries the category name as
its alias. The alias is what the model sees and what answers are keyed by.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Type

from pydantic import BaseModel, ConfigDict, Field, StrictBool, create_model

from ..exceptions import ConfigurationError
from ..models import FALLBACK_FIELD, Category, FallbackPolicy

logger = logging.getLogger(__name__)

FALLBACK_DESCRIPTION = "Should be true if none of the other categories apply"


def normalize_category_name(name: str) -> str:
    """Key used to detect colliding category names."""
    return name.strip().casefold()


def describe_category(category: Category) -> str:
    return (
        f'Should be true if the input has category "{category.name}" '
        f"(description: {category.description})"
    )


@dataclass(frozen=True)
class AnswerContract:
    """The exact set of boolean fields a model answer must supply."""

    model: Type[BaseModel]
    category_names: List[str]
    has_fallback: bool

    @property
    def field_names(self) -> List[str]:
        """Answer keys in declared order."""
        if self.has_fallback:
            return [*self.category_names, FALLBACK_FIELD]
        return list(self.category_names)

    @property
    def branch_count(self) -> int:
        return len(self.field_names)

    def json_schema(self) -> Dict[str, Any]:
        return self.model.model_json_schema(by_alias=True)

    def parse_answer_json(self, text: str) -> Dict[str, bool]:
        """
        Decode and validate a JSON answer in one step.

        Raises:
            pydantic.ValidationError: If the text is not valid JSON (including
                nesting past the parser's depth limit) or violates the contract
        """
        answer = self.model.model_validate_json(text)
        return answer.model_dump(by_alias=True)

    def __len__(self) -> int:
        return len(self.field_names)


def build_answer_contract(
    categories: Sequence[Category], fallback: FallbackPolicy
) -> AnswerContract:
    """
    Build the answer contract for a category set.

    Args:
        categories: Ordered, non-empty category set
        fallback: Fallback policy; ``OTHER`` adds a trailing ``fallback`` field

    Returns:
        AnswerContract with one required boolean per category

    Raises:
        ConfigurationError: If category names collide after normalization
    """
    if not categories:
        raise ConfigurationError(
            "At least one category must be defined", parameter="categories"
        )

    reserved: Dict[str, str] = {}
    if fallback is FallbackPolicy.OTHER:
        reserved[normalize_category_name(FALLBACK_FIELD)] = FALLBACK_FIELD

    seen: Dict[str, str] = dict(reserved)
    for category in categories:
        key = normalize_category_name(category.name)
        if key in seen:
            raise ConfigurationError(
                f"Category name '{category.name}' collides with '{seen[key]}'",
                parameter="categories",
                suggested_fix="Give every category a distinct name",
            )
        seen[key] = category.name

    field_definitions: Dict[str, Any] = {}
    for position, category in enumerate(categories):
        field_definitions[f"category_{position}"] = (
            StrictBool,
            Field(alias=category.name, description=describe_category(category)),
        )
    if fallback is FallbackPolicy.OTHER:
        field_definitions["fallback_"] = (
            StrictBool,
            Field(alias=FALLBACK_FIELD, description=FALLBACK_DESCRIPTION),
        )

    model = create_model(
        "ClassificationAnswer",
        __config__=ConfigDict(extra="forbid"),
        **field_definitions,
    )

    contract = AnswerContract(
        model=model,
        category_names=[category.name for category in categories],
        has_fallback=fallback is FallbackPolicy.OTHER,
    )
    logger.debug(f"Built answer contract with fields: {contract.field_names}")
    return contract


# Configuration Schemas
class ModelConfiguration(BaseModel):
    """Schema for model configuration."""

    model_config = ConfigDict(protected_namespaces=())

    model_name: str = Field(description="Name of the model to use")
    temperature: float = Field(
        description="Temperature for generation", ge=0.0, le=2.0, default=0.0
    )
    max_tokens: Optional[int] = Field(
        description="Maximum tokens for completion", default=None
    )
    timeout: int = Field(description="Timeout in seconds", ge=1, default=30)
    retry_attempts: int = Field(description="Number of retry attempts", ge=0, default=1)
