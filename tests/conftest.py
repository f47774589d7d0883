"""Shared fixtures for text classifier tests."""

import json
from types import SimpleNamespace
from typing import Any, Callable, Dict
from unittest.mock import AsyncMock, Mock

import pytest

from text_classifier.config import ClassifierConfig
from text_classifier.models import Category


@pytest.fixture
def make_agent() -> Callable[..., Mock]:
    """Agent stub returning the given raw outputs in order."""

    def _make(*outputs: str) -> Mock:
        agent = Mock()
        agent.run = AsyncMock(
            side_effect=[SimpleNamespace(output=output) for output in outputs]
        )
        return agent

    return _make


@pytest.fixture
def make_agent_by_text() -> Callable[[Dict[str, Any]], Mock]:
    """Agent stub answering by user prompt; exception values are raised."""

    def _make(answers: Dict[str, Any]) -> Mock:
        def _run(user_prompt: str, deps: str = None) -> SimpleNamespace:
            answer = answers[user_prompt]
            if isinstance(answer, Exception):
                raise answer
            if isinstance(answer, dict):
                answer = json.dumps(answer)
            return SimpleNamespace(output=answer)

        agent = Mock()
        agent.run = AsyncMock(side_effect=_run)
        return agent

    return _make


@pytest.fixture
def bug_feature_categories() -> list:
    return [
        Category(name="Bug", description="defect report"),
        Category(name="Feature", description="enhancement request"),
    ]


@pytest.fixture
def make_config(bug_feature_categories) -> Callable[..., ClassifierConfig]:
    """Config factory using a model name with no registry entry."""

    def _make(**overrides: Any) -> ClassifierConfig:
        settings = {
            "categories": bug_feature_categories,
            "model_name": "test:stub",
        }
        settings.update(overrides)
        return ClassifierConfig(**settings)

    return _make
