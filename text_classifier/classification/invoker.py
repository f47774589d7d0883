"""
Single-item classification through the language model.

One primary model call per item, plus at most one repair call when
auto-fixing is enabled and the first answer breaks the contract.
"""

import logging
import time
from typing import Any, Dict, Optional

from litellm import token_counter

from ..exceptions import AnswerParseError, ClassificationError, LLMError, ValidationError
from ..llm.llm_models import Model
from ..llm.parsers import AnswerFixingParser, StructuredAnswerParser, response_text
from ..llm.prompts import ClassificationInstruction

logger = logging.getLogger(__name__)


class ClassificationInvoker:
    """Classifies one input text at a time against a fixed instruction and contract."""

    def __init__(
        self,
        agent: Any,
        instruction: ClassificationInstruction,
        parser: StructuredAnswerParser,
        auto_fix: bool = True,
        model: Optional[Model] = None,
    ) -> None:
        """
        Initialize the invoker.

        Args:
            agent: Agent with an async ``run(user_prompt, deps=system_prompt)``
            instruction: Instruction assembled once for the run
            parser: Parser bound to the run's answer contract
            auto_fix: Whether to attempt one repair pass on malformed answers
            model: Known model, enables the prompt length check
        """
        self.agent = agent
        self.instruction = instruction
        self.parser = parser
        self.auto_fix = auto_fix
        self.model = model
        self.fixing_parser = AnswerFixingParser(parser, agent) if auto_fix else None
        self.llm_calls = 0
        self.last_latency_ms: Optional[int] = None

    @property
    def repair_calls(self) -> int:
        return self.fixing_parser.repair_calls if self.fixing_parser else 0

    async def classify(
        self, input_text: str, item_index: Optional[int] = None
    ) -> Dict[str, bool]:
        """
        Classify one input text.

        Args:
            input_text: Text to classify
            item_index: Index of the originating item, carried on errors

        Returns:
            Validated answer keyed by category name (plus ``fallback``)

        Raises:
            ClassificationError: If the prompt, model call or answer parsing fails
        """
        self.last_latency_ms = None
        system_prompt, user_prompt = self.instruction.render(input_text)

        try:
            self._validate_prompt_length(system_prompt, user_prompt)
        except ValidationError as exc:
            raise ClassificationError(str(exc), item_index=item_index, cause=exc) from exc
        except Exception as exc:
            raise ClassificationError(
                f"Prompt length check failed: {exc}", item_index=item_index, cause=exc
            ) from exc

        start_time = time.perf_counter()
        self.llm_calls += 1
        try:
            response = await self.agent.run(user_prompt, deps=system_prompt)
            raw_output = response_text(response)
        except Exception as exc:
            raise ClassificationError(
                f"Model call failed: {exc}", item_index=item_index, cause=exc
            ) from exc
        finally:
            self.last_latency_ms = int((time.perf_counter() - start_time) * 1000)

        logger.debug(f"Raw answer for item {item_index}: {raw_output}")

        try:
            return self.parser.parse(raw_output)
        except AnswerParseError as parse_error:
            if self.fixing_parser is None:
                raise ClassificationError(
                    str(parse_error), item_index=item_index, cause=parse_error
                ) from parse_error

            logger.warning(
                f"Answer for item {item_index} failed validation, attempting repair"
            )
            try:
                return await self.fixing_parser.repair(raw_output, parse_error)
            except (AnswerParseError, LLMError) as repair_error:
                raise ClassificationError(
                    str(repair_error), item_index=item_index, cause=repair_error
                ) from repair_error

    def _validate_prompt_length(self, system_prompt: str, user_prompt: str) -> None:
        """
        Validate that the rendered prompt does not exceed half of the context window.
        """
        if self.model is None:
            return

        max_tokens = self.model.context_length // 2
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        token_count = token_counter(
            model=self.model.litellm_name or self.model.name, messages=messages
        )
        if token_count > max_tokens:
            raise ValidationError(
                f"Prompt token count ({token_count}) exceeds half of the context window ({max_tokens})",
                field="prompt",
                value=token_count,
            )
