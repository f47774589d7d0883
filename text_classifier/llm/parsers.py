"""
Structured answer parsing and repair.

``StructuredAnswerParser`` turns raw model text into a validated answer
and renders the format instructions embedded in the system prompt.
``AnswerFixingParser`` wraps it with a single repair round-trip through
the language model when the first answer does not satisfy the contract.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import AnswerParseError, LLMError
from .schemas import AnswerContract

logger = logging.getLogger(__name__)

FORMAT_INSTRUCTIONS_TEMPLATE = """The output should be formatted as a JSON instance that conforms to the JSON schema below.

As an example, for the schema {{"properties": {{"foo": {{"title": "Foo", "description": "a list of strings", "type": "array", "items": {{"type": "string"}}}}}}, "required": ["foo"]}}
the object {{"foo": ["bar", "baz"]}} is a well-formatted instance of the schema. The object {{"properties": {{"foo": ["bar", "baz"]}}}} is not well-formatted.

Here is the output schema:
```json
{schema}
```"""

REPAIR_SYSTEM_PROMPT = (
    "You repair answers that failed validation. Return only the corrected JSON."
)

REPAIR_PROMPT_TEMPLATE = """Instructions:
--------------
{instructions}
--------------
Completion:
--------------
{completion}
--------------

Above, the Completion did not satisfy the constraints given in the Instructions.
Error:
--------------
{error}
--------------

Please try again. Please only respond with an answer that satisfies the constraints laid out in the Instructions:"""

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def extract_json_text(raw_output: str) -> str:
    """Strip a markdown code fence around the JSON payload, if present."""
    match = _FENCE_PATTERN.search(raw_output)
    if match:
        return match.group(1).strip()
    return raw_output.strip()


def response_text(response: Any) -> str:
    """Pull the text output from an agent run result."""
    data = getattr(response, "output", None)
    if data is None:
        data = getattr(response, "data", None)
    if data is None:
        raise LLMError("Model returned an empty response")
    return data if isinstance(data, str) else str(data)


class StructuredAnswerParser:
    """Validates raw model output against an answer contract."""

    def __init__(self, contract: AnswerContract) -> None:
        self.contract = contract

    def get_format_instructions(self) -> str:
        schema = dict(self.contract.json_schema())
        schema.pop("title", None)
        schema.pop("type", None)
        return FORMAT_INSTRUCTIONS_TEMPLATE.format(schema=json.dumps(schema))

    def parse(self, raw_output: str) -> Dict[str, bool]:
        """
        Parse raw model text into a classification answer.

        Raises:
            AnswerParseError: If the text is not JSON or violates the contract
        """
        if not isinstance(raw_output, str):
            raise AnswerParseError(
                f"Expected text output, got {type(raw_output).__name__}",
                raw_output=None,
            )

        try:
            return self.contract.parse_answer_json(extract_json_text(raw_output))
        except PydanticValidationError as exc:
            if any(error["type"] == "json_invalid" for error in exc.errors()):
                message = f"Failed to parse JSON from completion: {exc}"
            else:
                message = f"Answer does not match the expected fields: {exc}"
            raise AnswerParseError(message, raw_output=raw_output) from exc


class AnswerFixingParser:
    """Parser that asks the model once to repair a malformed answer."""

    def __init__(self, parser: StructuredAnswerParser, agent: Any) -> None:
        self.parser = parser
        self.agent = agent
        self.repair_calls = 0

    @property
    def contract(self) -> AnswerContract:
        return self.parser.contract

    def get_format_instructions(self) -> str:
        return self.parser.get_format_instructions()

    def parse(self, raw_output: str) -> Dict[str, bool]:
        return self.parser.parse(raw_output)

    async def repair(
        self, raw_output: Optional[str], error: AnswerParseError
    ) -> Dict[str, bool]:
        """
        Run one repair round-trip and re-parse the result.

        Raises:
            AnswerParseError: If the repaired answer is still invalid
            LLMError: If the repair call itself fails
        """
        prompt = REPAIR_PROMPT_TEMPLATE.format(
            instructions=self.get_format_instructions(),
            completion=raw_output,
            error=error.detail,
        )

        self.repair_calls += 1
        try:
            response = await self.agent.run(prompt, deps=REPAIR_SYSTEM_PROMPT)
        except Exception as exc:
            raise LLMError(f"Repair call failed: {exc}") from exc

        repaired = self.parser.parse(response_text(response))
        logger.debug("Repaired malformed answer")
        return repaired
