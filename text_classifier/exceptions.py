"""
Custom exceptions for the text classifier.
"""

from typing import Any, Optional


class TextClassifierError(Exception):
    """Base exception for all text classifier errors."""

    pass


class ConfigurationError(TextClassifierError):
    """Raised when category or option configuration is invalid."""

    def __init__(self, message: str, parameter: str = None, suggested_fix: str = None):
        self.parameter = parameter
        self.suggested_fix = suggested_fix

        full_message = f"Configuration Error: {message}"
        if parameter:
            full_message += f" (Parameter: {parameter})"
        if suggested_fix:
            full_message += f" Suggested fix: {suggested_fix}"

        super().__init__(full_message)


class ValidationError(TextClassifierError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str = None, value: Any = None):
        self.field = field
        self.value = value

        full_message = f"Validation Error: {message}"
        if field:
            full_message += f" (Field: {field})"
        if value is not None:
            full_message += f" (Value: {value})"

        super().__init__(full_message)


class LLMError(TextClassifierError):
    """Raised when a language model call fails."""

    def __init__(self, message: str, model: str = None, error_type: str = None):
        self.model = model
        self.error_type = error_type

        full_message = f"LLM Error: {message}"
        if model:
            full_message += f" (Model: {model})"
        if error_type:
            full_message += f" (Type: {error_type})"

        super().__init__(full_message)


class AnswerParseError(TextClassifierError):
    """Raised when a model answer does not satisfy the answer contract."""

    def __init__(self, message: str, raw_output: Optional[str] = None):
        self.raw_output = raw_output
        self.detail = message
        super().__init__(f"Answer Parse Error: {message}")


class ClassificationError(TextClassifierError):
    """Raised when classifying a single item fails."""

    def __init__(
        self,
        message: str,
        item_index: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        self.item_index = item_index
        self.cause = cause
        self.detail = message

        full_message = f"Classification Error: {message}"
        if item_index is not None:
            full_message += f" (Item: {item_index})"

        super().__init__(full_message)
