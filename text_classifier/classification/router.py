"""
Routing of classified items to output branches.

Each item is classified into an ``ItemOutcome``. Outcomes are then folded
into the branch accumulator according to the tolerance policy: tolerant
runs turn failures into error records on branch 0, intolerant runs stop
at the first failure and raise it.
"""

import logging
from typing import Any, Callable, List, Optional, Sequence

from ..exceptions import ClassificationError
from ..models import (
    AGGREGATE_BRANCH_LABEL,
    FALLBACK_FIELD,
    OTHER_BRANCH_LABEL,
    Item,
    ItemOutcome,
    OutputBranches,
)
from ..llm.schemas import AnswerContract
from .invoker import ClassificationInvoker

logger = logging.getLogger(__name__)

TextGetter = Callable[[Item, int], Any]

MISSING_TEXT_MESSAGE = "Text to classify is not defined"


def field_text_getter(field: str) -> TextGetter:
    """Text getter reading one key of the item JSON."""

    def _get(item: Item, index: int) -> Any:
        return item.json.get(field) if isinstance(item.json, dict) else None

    return _get


def error_record(message: str, index: Optional[int]) -> Item:
    return Item(json={"error": message}, paired_item=index)


class Router:
    """Classifies items one at a time and fans them out to branches."""

    def __init__(
        self,
        invoker: ClassificationInvoker,
        contract: AnswerContract,
        text_getter: TextGetter,
        continue_on_fail: bool = False,
    ) -> None:
        self.invoker = invoker
        self.contract = contract
        self.text_getter = text_getter
        self.continue_on_fail = continue_on_fail
        self.outcomes: List[ItemOutcome] = []

    def branch_labels(self) -> List[str]:
        labels = list(self.contract.category_names)
        if self.contract.has_fallback:
            labels.append(OTHER_BRANCH_LABEL)
        return labels

    def destinations(self, answer: dict) -> List[int]:
        """Branch indices for every true field, in contract order."""
        indices = [
            position
            for position, name in enumerate(self.contract.category_names)
            if answer.get(name)
        ]
        if self.contract.has_fallback and answer.get(FALLBACK_FIELD):
            indices.append(len(self.contract.category_names))
        return indices

    async def classify_item(self, index: int, item: Item) -> ItemOutcome:
        """Classify one item; failures are captured in the outcome, not raised."""
        text = self.text_getter(item, index)
        if text is None:
            return ItemOutcome(
                index=index,
                item=item,
                error=ClassificationError(MISSING_TEXT_MESSAGE, item_index=index),
            )

        calls_before = self.invoker.llm_calls + self.invoker.repair_calls
        repairs_before = self.invoker.repair_calls
        outcome = ItemOutcome(index=index, item=item)
        try:
            outcome.answer = await self.invoker.classify(
                text if isinstance(text, str) else str(text), item_index=index
            )
        except ClassificationError as exc:
            outcome.error = exc

        outcome.llm_calls = self.invoker.llm_calls + self.invoker.repair_calls - calls_before
        outcome.repaired = self.invoker.repair_calls > repairs_before
        outcome.latency_ms = self.invoker.last_latency_ms
        return outcome

    def fold(self, outcome: ItemOutcome, branches: OutputBranches) -> None:
        """
        Place one outcome into the branch accumulator.

        Raises:
            ClassificationError: If the outcome failed and the run is intolerant
        """
        self.outcomes.append(outcome)

        if not outcome.success:
            error = outcome.error
            if not self.continue_on_fail:
                logger.error(f"Aborting run at item {outcome.index}: {error}")
                raise error
            logger.warning(f"Item {outcome.index} failed, continuing: {error}")
            branches.append(0, error_record(error.detail, outcome.index))
            return

        routed = Item(json=outcome.item.json, paired_item=outcome.index)
        destinations = self.destinations(outcome.answer)
        for branch_index in destinations:
            branches.append(branch_index, routed)

        if not destinations:
            logger.debug(f"Item {outcome.index} matched no branch and was discarded")

    async def route_items(self, items: Sequence[Item]) -> OutputBranches:
        """
        Classify and route every item, strictly in input order.

        Returns:
            Branches sized by category count plus the optional fallback branch
        """
        branches = OutputBranches(self.branch_labels())
        for index, item in enumerate(items):
            outcome = await self.classify_item(index, item)
            self.fold(outcome, branches)
        return branches

    async def route_aggregate(self, input_text: str) -> OutputBranches:
        """
        Classify a single text and return the answer as one item.

        Classification failures become an error record, never an exception.
        """
        branches = OutputBranches([AGGREGATE_BRANCH_LABEL])
        outcome = ItemOutcome(index=0, item=Item(json={"input": input_text}))
        try:
            outcome.answer = await self.invoker.classify(input_text, item_index=0)
        except ClassificationError as exc:
            outcome.error = exc

        outcome.llm_calls = self.invoker.llm_calls + self.invoker.repair_calls
        outcome.repaired = self.invoker.repair_calls > 0
        outcome.latency_ms = self.invoker.last_latency_ms
        self.outcomes.append(outcome)

        if outcome.success:
            branches.append(
                0, Item(json={**outcome.answer, "input": input_text}, paired_item=0)
            )
        else:
            logger.warning(f"Aggregate classification failed: {outcome.error}")
            branches.append(0, error_record(outcome.error.detail, 0))
        return branches
