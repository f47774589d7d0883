"""
Tests for routing classified items to output branches.
"""

import pytest

from text_classifier.classification.invoker import ClassificationInvoker
from text_classifier.classification.router import Router, field_text_getter
from text_classifier.exceptions import ClassificationError
from text_classifier.llm.parsers import StructuredAnswerParser
from text_classifier.llm.prompts import assemble_instruction
from text_classifier.llm.schemas import build_answer_contract
from text_classifier.models import FallbackPolicy, Item, ItemOutcome, OutputBranches


@pytest.fixture
def build_router(bug_feature_categories):
    def _build(
        agent,
        fallback: FallbackPolicy = FallbackPolicy.OTHER,
        continue_on_fail: bool = False,
        auto_fix: bool = False,
    ) -> Router:
        contract = build_answer_contract(bug_feature_categories, fallback)
        parser = StructuredAnswerParser(contract)
        instruction = assemble_instruction(
            None, bug_feature_categories, False, fallback, parser.get_format_instructions()
        )
        invoker = ClassificationInvoker(agent, instruction, parser, auto_fix=auto_fix)
        return Router(
            invoker=invoker,
            contract=contract,
            text_getter=field_text_getter("text"),
            continue_on_fail=continue_on_fail,
        )

    return _build


def items(*texts) -> list:
    return [Item(json={"text": text}) if text is not None else Item(json={}) for text in texts]


class TestDestinations:
    def test_single_true_field(self, build_router, make_agent) -> None:
        router = build_router(make_agent())
        assert router.destinations({"Bug": True, "Feature": False, "fallback": False}) == [0]

    def test_multiple_true_fields_all_routed(self, build_router, make_agent) -> None:
        """Exclusivity is not enforced when routing."""
        router = build_router(make_agent())
        assert router.destinations({"Bug": True, "Feature": True, "fallback": True}) == [
            0,
            1,
            2,
        ]

    def test_no_true_field(self, build_router, make_agent) -> None:
        router = build_router(make_agent(), fallback=FallbackPolicy.DISCARD)
        assert router.destinations({"Bug": False, "Feature": False}) == []

    def test_branch_labels(self, build_router, make_agent) -> None:
        assert build_router(make_agent()).branch_labels() == ["Bug", "Feature", "Other"]
        assert build_router(
            make_agent(), fallback=FallbackPolicy.DISCARD
        ).branch_labels() == ["Bug", "Feature"]


class TestRouteItems:
    """Per-item classification and fan-out."""

    @pytest.mark.asyncio
    async def test_routes_by_answer(self, build_router, make_agent_by_text) -> None:
        agent = make_agent_by_text(
            {
                "app crashes on launch": {"Bug": True, "Feature": False, "fallback": False},
                "please add dark mode": {"Bug": False, "Feature": True, "fallback": False},
                "hello there": {"Bug": False, "Feature": False, "fallback": True},
            }
        )
        router = build_router(agent)

        branches = await router.route_items(
            items("app crashes on launch", "please add dark mode", "hello there")
        )

        assert len(branches) == 3
        assert [item.paired_item for item in branches[0]] == [0]
        assert [item.paired_item for item in branches[1]] == [1]
        assert [item.paired_item for item in branches[2]] == [2]
        assert branches[0][0].json == {"text": "app crashes on launch"}

    @pytest.mark.asyncio
    async def test_unmatched_item_discarded(self, build_router, make_agent_by_text) -> None:
        agent = make_agent_by_text({"weather": {"Bug": False, "Feature": False}})
        router = build_router(agent, fallback=FallbackPolicy.DISCARD)

        branches = await router.route_items(items("weather"))

        assert branches.total_items() == 0
        assert len(branches) == 2

    @pytest.mark.asyncio
    async def test_one_model_call_per_item(self, build_router, make_agent_by_text) -> None:
        answer = {"Bug": True, "Feature": True, "fallback": False}
        agent = make_agent_by_text({f"text {i}": answer for i in range(5)})
        router = build_router(agent)

        branches = await router.route_items(items(*[f"text {i}" for i in range(5)]))

        assert agent.run.await_count == 5
        assert branches.total_items() == 10

    @pytest.mark.asyncio
    async def test_input_items_not_mutated(self, build_router, make_agent_by_text) -> None:
        agent = make_agent_by_text({"crash": {"Bug": True, "Feature": False, "fallback": False}})
        router = build_router(agent)
        original = Item(json={"text": "crash"})

        await router.route_items([original])

        assert original.paired_item is None


class TestFailureIsolation:
    """Tolerant and intolerant handling of per-item failures."""

    @pytest.mark.asyncio
    async def test_tolerant_mode_emits_error_record(
        self, build_router, make_agent_by_text
    ) -> None:
        agent = make_agent_by_text(
            {
                "first": {"Bug": False, "Feature": True, "fallback": False},
                "second": RuntimeError("model exploded"),
                "third": {"Bug": True, "Feature": False, "fallback": False},
            }
        )
        router = build_router(agent, continue_on_fail=True)

        branches = await router.route_items(items("first", "second", "third"))

        assert [item.paired_item for item in branches[0]] == [1, 2]
        error_item = branches[0][0]
        assert "model exploded" in error_item.json["error"]
        assert [item.paired_item for item in branches[1]] == [0]
        assert len(router.outcomes) == 3
        assert [outcome.success for outcome in router.outcomes] == [True, False, True]

    @pytest.mark.asyncio
    async def test_intolerant_mode_aborts(self, build_router, make_agent_by_text) -> None:
        agent = make_agent_by_text(
            {
                "first": {"Bug": False, "Feature": True, "fallback": False},
                "second": RuntimeError("model exploded"),
                "third": {"Bug": True, "Feature": False, "fallback": False},
            }
        )
        router = build_router(agent, continue_on_fail=False)

        with pytest.raises(ClassificationError) as exc_info:
            await router.route_items(items("first", "second", "third"))

        assert exc_info.value.item_index == 1
        assert agent.run.await_count == 2

    @pytest.mark.asyncio
    async def test_missing_text_tolerant(self, build_router, make_agent_by_text) -> None:
        agent = make_agent_by_text({"crash": {"Bug": True, "Feature": False, "fallback": False}})
        router = build_router(agent, continue_on_fail=True)

        branches = await router.route_items(items(None, "crash"))

        assert branches[0][0].json == {"error": "Text to classify is not defined"}
        assert branches[0][0].paired_item == 0
        assert branches[0][1].paired_item == 1
        assert agent.run.await_count == 1

    @pytest.mark.asyncio
    async def test_missing_text_intolerant(self, build_router, make_agent) -> None:
        agent = make_agent()
        router = build_router(agent, continue_on_fail=False)

        with pytest.raises(ClassificationError) as exc_info:
            await router.route_items(items(None))

        assert exc_info.value.item_index == 0
        assert "(Item: 0)" in str(exc_info.value)
        agent.run.assert_not_awaited()

    def test_fold_never_places_failed_answers_on_category_branches(
        self, build_router, make_agent
    ) -> None:
        router = build_router(make_agent(), continue_on_fail=True)
        branches = OutputBranches(router.branch_labels())
        outcome = ItemOutcome(
            index=4,
            item=Item(json={"text": "x"}),
            error=ClassificationError("boom", item_index=4),
        )

        router.fold(outcome, branches)

        assert branches.total_items() == 1
        assert branches[0][0].json == {"error": "boom"}
        assert branches[1] == [] and branches[2] == []


class TestRouteAggregate:
    """Single-shot classification when categories come from items."""

    @pytest.mark.asyncio
    async def test_answer_merged_with_input(self, build_router, make_agent_by_text) -> None:
        agent = make_agent_by_text(
            {"app crashes": {"Bug": True, "Feature": False, "fallback": False}}
        )
        router = build_router(agent)

        branches = await router.route_aggregate("app crashes")

        assert branches.labels == ["Output"]
        assert branches[0][0].json == {
            "Bug": True,
            "Feature": False,
            "fallback": False,
            "input": "app crashes",
        }

    @pytest.mark.asyncio
    async def test_failure_becomes_error_record(self, build_router, make_agent) -> None:
        agent = make_agent("not json at all")
        router = build_router(agent, continue_on_fail=False)

        branches = await router.route_aggregate("app crashes")

        assert len(branches[0]) == 1
        assert "error" in branches[0][0].json
        assert "Failed to parse JSON" in branches[0][0].json["error"]
