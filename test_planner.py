"""
Tests for plan parsing, validation and the Gemini planning client

Usage:
    pytest test_planner.py
"""
import json
from types import SimpleNamespace

import pytest

from conftest import gemini_response
from orchestration import (
    AgentKind,
    Conversation,
    ConversationStatus,
    ErrorCode,
    GeminiPlanner,
    PlanningFailure,
    PlanStep,
    StepResult,
    StepStatus,
    build_clarified_prompt,
)
from orchestration.planner import parse_plan_response, summarize_prior_conversations, validate_plan

PLAN_JSON = json.dumps({
    "plan": [
        {"step": 1, "agent": "SearchAgent", "task": "Find the top rated laptops of 2025"},
        {"step": 2, "agent": "SheetsAgent", "task": "Tabulate model, price and rating"},
        {"step": 3, "agent": "Orchestrator", "task": "Summarize the comparison"},
    ]
})

CLARIFICATION_JSON = json.dumps({
    "clarification": {
        "question": "Which city do you mean?",
        "options": [{"key": "paris_fr", "value": "Paris, France"}, {"key": "paris_tx", "value": "Paris, Texas"}],
    }
})


class FakeModels:
    """Stands in for client.models, answering generate_content from a script"""

    def __init__(self, *texts):
        self.texts = list(texts)
        self.calls = []

    def generate_content(self, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        return gemini_response(self.texts.pop(0))


def _client(*texts):
    return SimpleNamespace(models=FakeModels(*texts))


def test_parse_plan():
    outcome = parse_plan_response(PLAN_JSON)

    assert outcome.clarification is None
    assert [s.agent for s in outcome.plan] == [AgentKind.SEARCH, AgentKind.SHEETS, AgentKind.ORCHESTRATOR]
    assert outcome.plan[1].task == "Tabulate model, price and rating"


def test_parse_plan_inside_markdown_fence():
    outcome = parse_plan_response(f"```json\n{PLAN_JSON}\n```")
    assert len(outcome.plan) == 3


def test_parse_clarification():
    outcome = parse_plan_response(CLARIFICATION_JSON)

    assert outcome.plan is None
    assert outcome.clarification.question == "Which city do you mean?"
    assert [o.key for o in outcome.clarification.options] == ["paris_fr", "paris_tx"]


def test_clarification_wins_when_both_are_present():
    both = json.loads(PLAN_JSON) | json.loads(CLARIFICATION_JSON)
    outcome = parse_plan_response(json.dumps(both))
    assert outcome.plan is None
    assert outcome.clarification is not None


@pytest.mark.parametrize("text", ["not json at all", "[1, 2, 3]", '{"answer": "hello"}'])
def test_unusable_responses_are_planning_failures(text):
    with pytest.raises(PlanningFailure) as info:
        parse_plan_response(text)
    assert info.value.code == ErrorCode.PLANNING_FAILED


def test_clarification_without_options_is_rejected():
    with pytest.raises(PlanningFailure):
        parse_plan_response(json.dumps({"clarification": {"question": "Which?", "options": []}}))


def test_unknown_agent_is_an_invalid_plan():
    text = json.dumps({"plan": [{"step": 1, "agent": "TeleportAgent", "task": "go"}]})
    with pytest.raises(PlanningFailure) as info:
        parse_plan_response(text)
    assert info.value.code == ErrorCode.INVALID_PLAN


def test_empty_plan_is_invalid():
    with pytest.raises(PlanningFailure) as info:
        parse_plan_response('{"plan": []}')
    assert info.value.code == ErrorCode.INVALID_PLAN


@pytest.mark.parametrize("steps", [
    [PlanStep(2, AgentKind.ORCHESTRATOR, "answer")],
    [PlanStep(1, AgentKind.SEARCH, "a"), PlanStep(1, AgentKind.ORCHESTRATOR, "b")],
    [PlanStep(1, AgentKind.SEARCH, "a"), PlanStep(3, AgentKind.EMAIL, "c"), PlanStep(2, AgentKind.ORCHESTRATOR, "b")],
    [PlanStep(1, AgentKind.SEARCH, "  ")],
])
def test_validate_plan_rejects_bad_ordering_and_empty_tasks(steps):
    with pytest.raises(PlanningFailure) as info:
        validate_plan(steps)
    assert info.value.code == ErrorCode.INVALID_PLAN


def test_validate_plan_accepts_intermediate_orchestrator_steps():
    steps = [
        PlanStep(1, AgentKind.SEARCH, "gather"),
        PlanStep(2, AgentKind.ORCHESTRATOR, "pick the best three"),
        PlanStep(3, AgentKind.EMAIL, "draft an email about them"),
        PlanStep(4, AgentKind.ORCHESTRATOR, "answer"),
    ]
    assert validate_plan(steps) == steps


def test_clarified_prompt_carries_original_and_choice():
    prompt = build_clarified_prompt("Weather in Paris this weekend", "Paris, Texas")
    assert prompt == (
        'The user\'s original request was: "Weather in Paris this weekend". '
        'I asked for clarification, and the user chose: "Paris, Texas". '
        "Now, please generate the execution plan based on this clarified request."
    )


def test_gemini_planner_single_cycle():
    client = _client(PLAN_JSON)
    planner = GeminiPlanner(client, model_name="planner-model", history_limit=5)

    outcome = planner.request_plan("Compare laptops", [], cycle_budget=1)

    assert len(outcome.plan) == 3
    call = client.models.calls[0]
    assert call["model"] == "planner-model"
    assert call["config"].response_mime_type == "application/json"
    assert "Compare laptops" in call["contents"][0].parts[0].text
    assert "SheetsAgent" in planner.system_prompt


def test_gemini_planner_refines_for_each_cycle():
    refined = json.dumps({"plan": [
        {"step": 1, "agent": "SearchAgent", "task": "Find laptops"},
        {"step": 2, "agent": "Orchestrator", "task": "Answer"},
    ]})
    client = _client(PLAN_JSON, PLAN_JSON, refined)
    planner = GeminiPlanner(client, model_name="planner-model")

    outcome = planner.request_plan("Compare laptops", [], cycle_budget=3)

    assert len(client.models.calls) == 3
    assert len(outcome.plan) == 2
    # Refinement passes see the previous draft
    last_contents = client.models.calls[2]["contents"]
    assert last_contents[-2].role == "model"
    assert "Review it critically" in last_contents[-1].parts[0].text


def test_gemini_planner_stops_at_clarification():
    client = _client(CLARIFICATION_JSON, PLAN_JSON)
    planner = GeminiPlanner(client, model_name="planner-model")

    outcome = planner.request_plan("Weather in Paris", [], cycle_budget=3)

    assert outcome.clarification is not None
    assert len(client.models.calls) == 1


def test_gemini_planner_empty_response_is_a_failure():
    client = SimpleNamespace(models=SimpleNamespace(
        generate_content=lambda **kwargs: SimpleNamespace(candidates=[])
    ))
    planner = GeminiPlanner(client, model_name="planner-model")
    with pytest.raises(PlanningFailure):
        planner.request_plan("anything", [], cycle_budget=1)


def test_gemini_planner_includes_prior_conversations():
    previous = Conversation(prompt="Find cafes near Central Park", status=ConversationStatus.COMPLETED)
    previous.results = [
        StepResult(1, AgentKind.ORCHESTRATOR, "answer", result="Try Bluestone Lane.", status=StepStatus.COMPLETED),
    ]
    client = _client(PLAN_JSON)
    planner = GeminiPlanner(client, model_name="planner-model", history_limit=5)

    planner.request_plan("And one with wifi?", [previous], cycle_budget=1)

    text = client.models.calls[0]["contents"][0].parts[0].text
    assert "Find cafes near Central Park" in text
    assert "Try Bluestone Lane." in text
    assert text.endswith("And one with wifi?")


def test_summarize_prior_conversations_keeps_most_recent():
    conversations = [Conversation(prompt=f"question {i}") for i in range(8)]
    failed = Conversation(prompt="broken one", status=ConversationStatus.ERROR, error_message="quota exceeded")
    conversations.append(failed)

    summary = summarize_prior_conversations(conversations, limit=3)

    assert "question 5" not in summary
    assert "question 6" in summary
    assert "question 7" in summary
    assert "Failed: quota exceeded" in summary


def test_summarize_prior_conversations_disabled():
    assert summarize_prior_conversations([Conversation(prompt="hi")], limit=0) == ""
