"""
LLM interaction module for the text classifier.

This module provides Pydantic AI agents, the dynamic answer contract,
prompt assembly and structured answer parsing.
"""

from .agents import (
    AgentFactory,
    create_classification_agent,
    get_agent_factory,
)
from .llm_models import Model, Models, find_model
from .parsers import AnswerFixingParser, StructuredAnswerParser
from .prompts import (
    DEFAULT_SYSTEM_PROMPT_TEMPLATE,
    ClassificationInstruction,
    assemble_instruction,
)
from .schemas import AnswerContract, ModelConfiguration, build_answer_contract

__all__ = [
    # Schemas
    "AnswerContract",
    "ModelConfiguration",
    "build_answer_contract",
    # Prompts
    "DEFAULT_SYSTEM_PROMPT_TEMPLATE",
    "ClassificationInstruction",
    "assemble_instruction",
    # Parsers
    "StructuredAnswerParser",
    "AnswerFixingParser",
    # Agents
    "AgentFactory",
    "get_agent_factory",
    "create_classification_agent",
    # Models
    "Model",
    "Models",
    "find_model",
]
