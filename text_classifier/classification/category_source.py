"""
Category set resolution.

Categories come either from static configuration or from the input items
themselves, where each item supplies a ``category`` and ``description``.
"""

import logging
from typing import Any, List, Optional, Sequence

from ..exceptions import ConfigurationError, ValidationError
from ..models import Category, CategorySourceMode, Item

logger = logging.getLogger(__name__)


class CategorySource:
    """Resolves the ordered category set for one execution."""

    def resolve(
        self,
        mode: CategorySourceMode,
        items: Sequence[Item],
        static_categories: Optional[Sequence[Category]] = None,
    ) -> List[Category]:
        """
        Resolve the category set.

        Args:
            mode: Whether categories are static or derived from items
            items: Input items (only read in input-items mode)
            static_categories: Configured categories (static mode)

        Returns:
            Non-empty ordered list of categories

        Raises:
            ConfigurationError: If the resulting set is empty or a name is blank
            ValidationError: If an input item lacks a valid category or description
        """
        if mode is CategorySourceMode.INPUT_ITEMS:
            categories = self._from_items(items)
        else:
            categories = self._from_static(static_categories or [])

        if not categories:
            raise ConfigurationError(
                "At least one category must be defined",
                parameter="categories",
                suggested_fix="Add a category or enable loading categories from input items",
            )

        logger.debug(
            f"Resolved {len(categories)} categories in {mode.value} mode: "
            f"{', '.join(category.name for category in categories)}"
        )
        return categories

    def _from_static(self, static_categories: Sequence[Category]) -> List[Category]:
        for index, category in enumerate(static_categories):
            if not isinstance(category.name, str) or not category.name.strip():
                raise ConfigurationError(
                    f"Category {index} has an empty name",
                    parameter="categories",
                )
        return list(static_categories)

    def _from_items(self, items: Sequence[Item]) -> List[Category]:
        categories = []
        for index, item in enumerate(items):
            category = _field(item, "category")
            description = _field(item, "description")
            if not _is_filled(category) or not _is_filled(description):
                raise ValidationError(
                    f"Input item {index} is missing a valid 'category' or 'description' field",
                    field=f"items[{index}]",
                )
            categories.append(Category(name=category, description=description))
        return categories


def _field(item: Item, key: str) -> Any:
    payload = item.json if isinstance(item, Item) else item
    if not isinstance(payload, dict):
        return None
    return payload.get(key)


def _is_filled(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())
