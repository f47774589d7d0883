#!/usr/bin/env python3
"""
Example usage of the TextClassifier.

This example routes support tickets to one branch per category, with an
extra "Other" branch for tickets that match nothing. It needs an API key
for the configured model provider (OPENAI_API_KEY by default).
"""

import asyncio
import logging
from typing import List

from text_classifier import (
    Category,
    ClassifierConfig,
    ClassificationError,
    Item,
    TextClassifier,
    configured_outputs,
)


def create_sample_tickets() -> List[Item]:
    """Create sample support tickets."""
    texts = [
        "The app crashes every time I open the settings page.",
        "Could you add a dark mode? My eyes would thank you.",
        "I was charged twice for my subscription this month.",
        "What a lovely day it is today.",
    ]
    return [Item(json={"id": i, "text": text}) for i, text in enumerate(texts)]


async def main() -> None:
    config = ClassifierConfig(
        categories=[
            Category(name="Bug", description="defect or crash report"),
            Category(name="Feature", description="enhancement request"),
            Category(name="Billing", description="payments, invoices and refunds"),
        ],
        fallback="other",
        multi_class=False,
        continue_on_fail=True,
    )

    print("Output branches:", ", ".join(configured_outputs(config)))

    classifier = TextClassifier(config)
    try:
        branches = await classifier.execute(create_sample_tickets())
    except ClassificationError as e:
        print(f"Classification aborted: {e}")
        return

    for label, branch in zip(branches.labels, branches):
        print(f"\n{label}:")
        for item in branch:
            if "error" in item.json:
                print(f"  [item {item.paired_item}] error: {item.json['error']}")
            else:
                print(f"  [item {item.paired_item}] {item.json['text']}")

    print("\nMetrics:", classifier.get_metrics_summary())


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
