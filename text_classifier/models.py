"""
Data models and type definitions for the text classifier.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence

from .exceptions import ClassificationError


class FallbackPolicy(Enum):
    """What happens to items that match none of the categories."""

    DISCARD = "discard"
    OTHER = "other"


class CategorySourceMode(Enum):
    """Where the category set comes from."""

    STATIC = "static"
    INPUT_ITEMS = "input_items"


FALLBACK_FIELD = "fallback"
OTHER_BRANCH_LABEL = "Other"
AGGREGATE_BRANCH_LABEL = "Output"


@dataclass(frozen=True)
class Category:
    """A named class used both for the answer schema and as an output label."""

    name: str
    description: str = ""


@dataclass
class Item:
    """An input or output item with its JSON payload and origin index."""

    json: Dict[str, Any]
    paired_item: Optional[int] = None


@dataclass
class ItemOutcome:
    """Per-item classification result: either an answer or an error."""

    index: int
    item: Item
    answer: Optional[Dict[str, bool]] = None
    error: Optional[ClassificationError] = None
    llm_calls: int = 0
    repaired: bool = False
    latency_ms: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.error is None and self.answer is not None


class OutputBranches:
    """Ordered per-branch item lists produced by one execution."""

    def __init__(self, labels: Sequence[str]) -> None:
        self.labels: List[str] = list(labels)
        self.branches: List[List[Item]] = [[] for _ in self.labels]

    def append(self, branch_index: int, item: Item) -> None:
        self.branches[branch_index].append(item)

    def total_items(self) -> int:
        return sum(len(branch) for branch in self.branches)

    def __getitem__(self, index: int) -> List[Item]:
        return self.branches[index]

    def __len__(self) -> int:
        return len(self.branches)

    def __iter__(self) -> Iterator[List[Item]]:
        return iter(self.branches)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OutputBranches):
            return NotImplemented
        return self.labels == other.labels and self.branches == other.branches

    def __repr__(self) -> str:
        sizes = ", ".join(
            f"{label}={len(branch)}" for label, branch in zip(self.labels, self.branches)
        )
        return f"OutputBranches({sizes})"


@dataclass
class RunMetrics:
    """Metrics for a single classifier execution."""

    run_id: str
    mode: CategorySourceMode
    items_received: int
    items_classified: int
    items_failed: int
    llm_calls: int
    repair_calls: int
    total_latency_ms: int
    model_name: str
    timestamp: datetime = field(default_factory=datetime.now)
