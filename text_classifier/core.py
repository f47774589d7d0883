"""
Core TextClassifier class providing the main public API.

This module wires category resolution, answer contract, prompt assembly,
classification and routing into one execution.
"""

import asyncio
import logging
import time
import uuid
from typing import Any, Dict, List, Optional, Sequence, Union

from .classification.category_source import CategorySource
from .classification.invoker import ClassificationInvoker
from .classification.router import Router, TextGetter, field_text_getter
from .config import ClassifierConfig, configured_outputs
from .exceptions import ValidationError
from .llm.agents import create_classification_agent
from .llm.llm_models import Model, find_model
from .llm.parsers import StructuredAnswerParser
from .llm.prompts import assemble_instruction
from .llm.schemas import ModelConfiguration, build_answer_contract
from .models import CategorySourceMode, Item, OutputBranches, RunMetrics

logger = logging.getLogger(__name__)


class TextClassifier:
    """
    Classifies item text into configured categories and routes each item
    to the matching output branches.

    Categories, answer contract and instruction are resolved once per
    execution; the model is called once per item (once in total when
    categories come from the input items).
    """

    def __init__(
        self,
        config: ClassifierConfig,
        agent: Optional[Any] = None,
        model: Optional[Model] = None,
        text_getter: Optional[TextGetter] = None,
    ) -> None:
        """
        Initialize the classifier.

        Args:
            config: Validated classifier configuration
            agent: Prebuilt agent; created from ``config.model_name`` when omitted
            model: Model entry used for prompt length checks; looked up by name
                when omitted
            text_getter: Callable returning the text of an item; defaults to
                reading ``config.text_field`` from the item JSON
        """
        self.config = config
        self.agent = agent or create_classification_agent(
            config=ModelConfiguration(
                model_name=config.model_name, temperature=config.temperature
            )
        )
        self.model = model or find_model(config.model_name)
        self.text_getter = text_getter or field_text_getter(config.text_field)
        self.category_source = CategorySource()
        self.metrics_history: List[RunMetrics] = []

        logger.info(
            f"TextClassifier initialized with model {config.model_name}, "
            f"mode {config.mode.value}, fallback {config.fallback_policy.value}"
        )

    def output_labels(self) -> List[str]:
        return configured_outputs(self.config)

    async def execute(self, items: Sequence[Union[Item, Dict[str, Any]]]) -> OutputBranches:
        """
        Classify and route a batch of items.

        Args:
            items: Input items (``Item`` or plain JSON dicts)

        Returns:
            OutputBranches, one list per output branch

        Raises:
            ConfigurationError: If the category set is empty or names collide
            ValidationError: If category-source items are malformed, or the
                aggregate input text is missing
            ClassificationError: If an item fails and continue_on_fail is off
        """
        items = [item if isinstance(item, Item) else Item(json=item) for item in items]
        mode = self.config.mode
        run_id = f"run_{int(time.time())}_{uuid.uuid4().hex[:8]}"
        start_time = time.perf_counter()

        categories = self.category_source.resolve(mode, items, self.config.categories)
        contract = build_answer_contract(categories, self.config.fallback_policy)
        parser = StructuredAnswerParser(contract)
        instruction = assemble_instruction(
            self.config.system_prompt_template,
            categories,
            self.config.multi_class,
            self.config.fallback_policy,
            parser.get_format_instructions(),
        )
        invoker = ClassificationInvoker(
            agent=self.agent,
            instruction=instruction,
            parser=parser,
            auto_fix=self.config.enable_auto_fixing,
            model=self.model,
        )
        router = Router(
            invoker=invoker,
            contract=contract,
            text_getter=self.text_getter,
            continue_on_fail=self.config.continue_on_fail,
        )

        logger.info(
            f"Starting {run_id}: {len(items)} items, {len(categories)} categories"
        )

        try:
            if mode is CategorySourceMode.INPUT_ITEMS:
                input_text = self.text_getter(items[0], 0)
                if input_text is None:
                    raise ValidationError(
                        "Text to classify is not defined", field=self.config.text_field
                    )
                branches = await router.route_aggregate(
                    input_text if isinstance(input_text, str) else str(input_text)
                )
            else:
                branches = await router.route_items(items)
        finally:
            self._record_metrics(run_id, mode, items, router, invoker, start_time)

        logger.info(f"Completed {run_id}: {branches}")
        return branches

    def execute_sync(self, items: Sequence[Union[Item, Dict[str, Any]]]) -> OutputBranches:
        """Synchronous wrapper around :meth:`execute`."""
        return asyncio.run(self.execute(items))

    def _record_metrics(
        self,
        run_id: str,
        mode: CategorySourceMode,
        items: Sequence[Item],
        router: Router,
        invoker: ClassificationInvoker,
        start_time: float,
    ) -> None:
        successful = sum(1 for outcome in router.outcomes if outcome.success)
        metrics = RunMetrics(
            run_id=run_id,
            mode=mode,
            items_received=len(items),
            items_classified=successful,
            items_failed=len(router.outcomes) - successful,
            llm_calls=invoker.llm_calls + invoker.repair_calls,
            repair_calls=invoker.repair_calls,
            total_latency_ms=int((time.perf_counter() - start_time) * 1000),
            model_name=self.config.model_name,
        )
        self.metrics_history.append(metrics)

        logger.info(
            f"Run {run_id}: {successful}/{len(router.outcomes)} classified, "
            f"{metrics.repair_calls} repaired, {metrics.total_latency_ms}ms, "
            f"{metrics.llm_calls} LLM calls"
        )

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Get summary of classification metrics."""
        if not self.metrics_history:
            return {
                "total_runs": 0,
                "total_items": 0,
                "success_rate": 0.0,
                "average_latency_ms": 0.0,
                "total_llm_calls": 0,
            }

        total_items = sum(m.items_received for m in self.metrics_history)
        total_successful = sum(m.items_classified for m in self.metrics_history)
        total_failed = sum(m.items_failed for m in self.metrics_history)
        total_latency = sum(m.total_latency_ms for m in self.metrics_history)
        attempted = total_successful + total_failed

        return {
            "total_runs": len(self.metrics_history),
            "total_items": total_items,
            "total_successful": total_successful,
            "total_failed": total_failed,
            "success_rate": total_successful / attempted if attempted > 0 else 0.0,
            "average_latency_ms": total_latency / len(self.metrics_history),
            "total_llm_calls": sum(m.llm_calls for m in self.metrics_history),
            "total_repair_calls": sum(m.repair_calls for m in self.metrics_history),
        }

    def clear_metrics(self) -> None:
        """Clear metrics history."""
        self.metrics_history.clear()
        logger.info("Cleared classification metrics history")
