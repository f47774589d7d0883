"""
Pydantic AI agents for LLM interactions.

Agents return plain text; the classification answer is validated by the
structured answer parser, which is what lets the format instructions and
the repair pass stay under our control.
"""

import logging
from typing import Any, Dict, Optional

from pydantic_ai import Agent, RunContext

from ..exceptions import ConfigurationError
from .schemas import ModelConfiguration

logger = logging.getLogger(__name__)


def _system_prompt_from_deps(ctx: RunContext[str]) -> str:
    return ctx.deps or ""


class AgentFactory:
    """
    Builds text agents and caches them per model and temperature.

    The system prompt is supplied per run through ``deps``, so a single
    agent serves every item of a run as well as the repair round-trip.
    """

    def __init__(self, default_config: Optional[ModelConfiguration] = None):
        self.default_config = default_config or ModelConfiguration(
            model_name="openai:gpt-4o-mini"
        )
        self._agent_cache: Dict[str, Agent] = {}

    def create_classification_agent(
        self,
        model_name: Optional[str] = None,
        config: Optional[ModelConfiguration] = None,
    ) -> Agent:
        """
        Return the classification agent for a model, building it on first use.

        Args:
            model_name: Overrides the model named in ``config``
            config: Model settings; the factory default when omitted

        Raises:
            ConfigurationError: If pydantic-ai rejects the model settings
        """
        settings = config or self.default_config
        if model_name is not None:
            settings = settings.model_copy(update={"model_name": model_name})

        cache_key = f"{settings.model_name}@{settings.temperature}"
        agent = self._agent_cache.get(cache_key)
        if agent is None:
            agent = self._build_agent(settings)
            self._agent_cache[cache_key] = agent
        return agent

    def _build_agent(self, settings: ModelConfiguration) -> Agent:
        model_settings: Dict[str, Any] = {
            "temperature": settings.temperature,
            "timeout": settings.timeout,
        }
        if settings.max_tokens is not None:
            model_settings["max_tokens"] = settings.max_tokens

        try:
            agent = Agent(
                model=settings.model_name,
                output_type=str,
                deps_type=str,
                model_settings=model_settings,
                retries=settings.retry_attempts,
                defer_model_check=True,
            )
            agent.system_prompt(_system_prompt_from_deps)
        except Exception as e:
            logger.error(f"Could not build agent for {settings.model_name}: {e}")
            raise ConfigurationError(
                f"Failed to create classification agent: {e}",
                parameter="model_name",
            ) from e

        logger.info(f"Built classification agent for {settings.model_name}")
        return agent


_default_factory: Optional[AgentFactory] = None


def get_agent_factory(config: Optional[ModelConfiguration] = None) -> AgentFactory:
    """Shared factory; passing ``config`` replaces it."""
    global _default_factory

    if _default_factory is None or config is not None:
        _default_factory = AgentFactory(config)
    return _default_factory


def create_classification_agent(
    model_name: Optional[str] = None, config: Optional[ModelConfiguration] = None
) -> Agent:
    return get_agent_factory().create_classification_agent(model_name, config)
