"""Prompt templates and assembly for text classification."""

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..models import Category, FallbackPolicy

DEFAULT_SYSTEM_PROMPT_TEMPLATE = (
    "Please classify the text provided by the user into one of the following "
    "categories: {categories}, and use the provided formatting instructions below. "
    "Don't explain, and only output the json."
)

MULTI_CLASS_PROMPT = "Categories are not mutually exclusive, and multiple can be true"
SINGLE_CLASS_PROMPT = "Categories are mutually exclusive, and only one can be true"

FALLBACK_PROMPTS = {
    FallbackPolicy.OTHER: 'If no categories apply, select the "fallback" option.',
    FallbackPolicy.DISCARD: (
        "If there is not a very fitting category, select none of the categories."
    ),
}

_PLACEHOLDER_PATTERN = re.compile(r"\{(categories|format_instructions)\}")


@dataclass(frozen=True)
class ClassificationInstruction:
    """
    System and user templates bound once per execution.

    The category list, format instructions and input text are substituted
    at render time, so one instance serves every item of a run.
    """

    system_template: str
    category_names: Tuple[str, ...]
    format_instructions: str
    user_template: str = "{input_text}"

    def render_system(self) -> str:
        values = {
            "categories": ", ".join(self.category_names),
            "format_instructions": self.format_instructions,
        }
        # Single pass so substituted text is never re-scanned for placeholders.
        return _PLACEHOLDER_PATTERN.sub(
            lambda match: values[match.group(1)], self.system_template
        )

    def render_user(self, input_text: str) -> str:
        return self.user_template.replace("{input_text}", input_text)

    def render(self, input_text: str) -> Tuple[str, str]:
        """Return the (system prompt, user prompt) pair for one item."""
        return self.render_system(), self.render_user(input_text)


def build_system_template(
    template: Optional[str], multi_class: bool, fallback: FallbackPolicy
) -> str:
    """Join the base template, the format slot and the policy phrases."""
    base = template or DEFAULT_SYSTEM_PROMPT_TEMPLATE
    multi_class_prompt = MULTI_CLASS_PROMPT if multi_class else SINGLE_CLASS_PROMPT
    parts: List[str] = [
        base,
        "{format_instructions}",
        multi_class_prompt,
        FALLBACK_PROMPTS[fallback],
    ]
    return "\n".join(parts)


def assemble_instruction(
    template: Optional[str],
    categories: Sequence[Category],
    multi_class: bool,
    fallback: FallbackPolicy,
    format_instructions: str,
) -> ClassificationInstruction:
    """
    Assemble the classification instruction for one execution.

    Args:
        template: Caller-supplied system template, or None for the default
        categories: Resolved category set, in branch order
        multi_class: Whether several categories may be true at once
        fallback: Fallback policy selecting the no-match phrase
        format_instructions: Output format block from the answer parser

    Returns:
        ClassificationInstruction reused for every item of the run
    """
    return ClassificationInstruction(
        system_template=build_system_template(template, multi_class, fallback),
        category_names=tuple(category.name for category in categories),
        format_instructions=format_instructions,
    )
