"""Configuration management and validation for the text classifier."""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .exceptions import ConfigurationError
from .models import (
    AGGREGATE_BRANCH_LABEL,
    OTHER_BRANCH_LABEL,
    Category,
    CategorySourceMode,
    FallbackPolicy,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL_NAME = "openai:gpt-4o-mini"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {value}")


def validate_model_name(model_name: Any) -> bool:
    """Check that a model name has a non-empty provider and model part."""
    if not isinstance(model_name, str) or ":" not in model_name:
        return False
    provider, model = model_name.split(":", 1)
    return bool(provider.strip() and model.strip())


def _coerce_category(entry: Union[Category, Dict[str, Any]], index: int) -> Category:
    if isinstance(entry, Category):
        return entry
    if isinstance(entry, dict):
        name = entry.get("category", entry.get("name"))
        description = entry.get("description") or ""
        if not isinstance(name, str):
            raise ConfigurationError(
                f"Category {index} has no 'category' name",
                parameter="categories",
                suggested_fix="Give every category a non-empty 'category' string",
            )
        if not isinstance(description, str):
            raise ConfigurationError(
                f"Category {index} has a non-string description",
                parameter="categories",
            )
        return Category(name=name, description=description)
    raise ConfigurationError(
        f"Category {index} must be a Category or a mapping, got {type(entry).__name__}",
        parameter="categories",
    )


@dataclass
class ClassifierConfig:
    """Configuration for one classifier node, validated on creation."""

    # Category settings
    categories: List[Union[Category, Dict[str, Any]]] = field(default_factory=list)
    load_categories_from_input_items: bool = False

    # Policy settings
    multi_class: bool = False
    fallback: Union[str, FallbackPolicy] = FallbackPolicy.DISCARD
    system_prompt_template: Optional[str] = None
    enable_auto_fixing: bool = True
    continue_on_fail: bool = False

    # LLM settings
    model_name: str = DEFAULT_MODEL_NAME
    temperature: float = 0.0

    # Item access
    text_field: str = "text"

    # Additional settings
    extra_config: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate configuration parameters after initialization."""
        self._validate_all_parameters()
        self._load_environment_variables()

    @property
    def mode(self) -> CategorySourceMode:
        if self.load_categories_from_input_items:
            return CategorySourceMode.INPUT_ITEMS
        return CategorySourceMode.STATIC

    @property
    def fallback_policy(self) -> FallbackPolicy:
        return self.fallback  # normalised to the enum during validation

    def _validate_all_parameters(self):
        """Run all validation checks."""
        self._validate_fallback()
        self._validate_categories()
        self._validate_llm_settings()
        self._validate_text_field()

    def _validate_fallback(self):
        if isinstance(self.fallback, FallbackPolicy):
            return
        try:
            self.fallback = FallbackPolicy(str(self.fallback).strip().lower())
        except ValueError:
            allowed = [policy.value for policy in FallbackPolicy]
            raise ConfigurationError(
                f"fallback ({self.fallback}) must be one of {allowed}",
                parameter="fallback",
                suggested_fix="Use 'discard' to drop unmatched items or 'other' for an extra branch",
            )

    def _validate_categories(self):
        self.categories = [
            _coerce_category(entry, index) for index, entry in enumerate(self.categories)
        ]

    def _validate_llm_settings(self):
        """Validate LLM model settings."""
        if not validate_model_name(self.model_name):
            raise ConfigurationError(
                f"model_name ({self.model_name!r}) must use the provider:model format",
                parameter="model_name",
                suggested_fix="Specify a model name such as 'openai:gpt-4o-mini'",
            )

        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigurationError(
                f"temperature ({self.temperature}) must be between 0.0 and 2.0",
                parameter="temperature",
            )

    def _validate_text_field(self):
        if not self.text_field:
            raise ConfigurationError(
                "text_field cannot be empty",
                parameter="text_field",
                suggested_fix="Name the item field that holds the text, e.g. 'text'",
            )

    def _load_environment_variables(self):
        """Load configuration overrides from environment variables."""
        env_mappings = {
            "TEXT_CLASSIFIER_MODEL_NAME": "model_name",
            "TEXT_CLASSIFIER_TEMPERATURE": ("temperature", float),
            "TEXT_CLASSIFIER_FALLBACK": "fallback",
            "TEXT_CLASSIFIER_MULTI_CLASS": ("multi_class", _parse_bool),
            "TEXT_CLASSIFIER_ENABLE_AUTO_FIXING": ("enable_auto_fixing", _parse_bool),
            "TEXT_CLASSIFIER_CONTINUE_ON_FAIL": ("continue_on_fail", _parse_bool),
            "TEXT_CLASSIFIER_TEXT_FIELD": "text_field",
        }

        loaded = False
        for env_var, config_attr in env_mappings.items():
            env_value = os.getenv(env_var)
            if not env_value:
                continue
            loaded = True
            if isinstance(config_attr, tuple):
                attr_name, converter = config_attr
                try:
                    setattr(self, attr_name, converter(env_value))
                except ValueError:
                    raise ConfigurationError(
                        f"Invalid value for {env_var}: {env_value}",
                        parameter=attr_name,
                    )
            else:
                setattr(self, config_attr, env_value)

        if loaded:
            logger.debug("Applied environment overrides to classifier configuration")
            self._validate_all_parameters()


def configured_outputs(config: ClassifierConfig) -> List[str]:
    """
    Compute output branch labels from configuration alone.

    Args:
        config: Classifier configuration

    Returns:
        One label per output branch, in branch index order
    """
    if config.load_categories_from_input_items:
        return [AGGREGATE_BRANCH_LABEL]

    labels = [category.name for category in config.categories]
    if config.fallback_policy is FallbackPolicy.OTHER:
        labels.append(OTHER_BRANCH_LABEL)
    return labels
