"""
Classification module for the text classifier.

This module provides category resolution, single-item classification
and routing of classified items to output branches.
"""

from .category_source import CategorySource
from .invoker import ClassificationInvoker
from .router import Router, error_record, field_text_getter

__all__ = [
    "CategorySource",
    "ClassificationInvoker",
    "Router",
    "error_record",
    "field_text_getter",
]
