"""
Shared fakes for the test suite
Scripted planners and agents so the engine can be exercised without Gemini.
"""
from types import SimpleNamespace

import pytest

from orchestration import (
    AgentKind,
    AgentRegistry,
    Clarification,
    ClarificationOption,
    EventEmitter,
    InMemoryConversationStore,
    Orchestrator,
    PlanOutcome,
    PlanStep,
    StepExecutor,
    no_pacing,
)
from orchestration.contracts import AuxInput, StepOutput


class FakeAgent:
    """Streams the given chunks, then returns the given output or raises"""

    def __init__(self, chunks=("ok",), sources=None, artifact=None, error=None, requires=AuxInput.NONE, text=None):
        self.chunks = list(chunks)
        self.sources = sources or []
        self.artifact = artifact
        self.error = error
        self.requires = requires
        self.text = text
        self.requests = []

    def run(self, request, on_chunk):
        self.requests.append(request)
        for chunk in self.chunks:
            on_chunk(chunk)
        if self.error is not None:
            raise self.error
        return StepOutput(sources=list(self.sources), artifact=self.artifact, text=self.text)


class FakeSynthesizer:

    def __init__(self, chunks=("final answer",), error=None):
        self.chunks = list(chunks)
        self.error = error
        self.calls = []

    def run(self, original_prompt, context, on_chunk):
        self.calls.append({"prompt": original_prompt, "context": [(r.step, r.result, r.status) for r in context]})
        for chunk in self.chunks:
            on_chunk(chunk)
        if self.error is not None:
            raise self.error
        return StepOutput()


class FakeReasoner:

    def __init__(self, chunks=("reasoned",)):
        self.chunks = list(chunks)
        self.calls = []

    def run(self, task, original_prompt, context, on_chunk):
        self.calls.append({"task": task, "prompt": original_prompt, "context": [r.step for r in context]})
        for chunk in self.chunks:
            on_chunk(chunk)
        return StepOutput()


class ScriptedPlanner:
    """Returns queued outcomes in order; an Exception in the queue is raised"""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def request_plan(self, prompt, prior_conversations, cycle_budget):
        self.calls.append({
            "prompt": prompt,
            "prior": [c.id for c in prior_conversations],
            "cycle_budget": cycle_budget,
        })
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_plan(*agents):
    return [PlanStep(step=i, agent=agent, task=f"task {i}") for i, agent in enumerate(agents, 1)]


def plan_outcome(*agents):
    return PlanOutcome(plan=make_plan(*agents))


def clarification_outcome(question="Which one?", options=(("k1", "v1"), ("k2", "v2"))):
    return PlanOutcome(clarification=Clarification(
        question=question,
        options=tuple(ClarificationOption(key=k, value=v) for k, v in options),
    ))


class EventRecorder:

    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def of_kind(self, kind):
        return [e for e in self.events if e.kind == kind]


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def agents():
    return {
        AgentKind.SEARCH: FakeAgent(chunks=("search ", "result")),
        AgentKind.MAPS: FakeAgent(chunks=("map result",), requires=AuxInput.LOCATION),
        AgentKind.SHEETS: FakeAgent(chunks=("sheet",), requires=AuxInput.PREVIOUS_RESULT),
        AgentKind.VISION: FakeAgent(chunks=("a cat",), requires=AuxInput.IMAGE),
        AgentKind.EMAIL: FakeAgent(chunks=("Subject: hi",)),
    }


@pytest.fixture
def synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def reasoner():
    return FakeReasoner()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def executor(agents, synthesizer, reasoner, recorder, sleeps):
    return StepExecutor(
        registry=AgentRegistry(agents),
        synthesizer=synthesizer,
        intermediate=reasoner,
        pacing=no_pacing,
        sleep=sleeps.append,
        events=EventEmitter([recorder]),
    )


@pytest.fixture
def store():
    return InMemoryConversationStore(namespace="test_conversations")


@pytest.fixture
def make_orchestrator(executor, store):
    def build(*outcomes, cycle_budget=1):
        planner = ScriptedPlanner(*outcomes)
        orchestrator = Orchestrator(planner=planner, executor=executor, store=store, cycle_budget=cycle_budget)
        return orchestrator, planner
    return build


def gemini_response(text):
    """Shape of a google-genai response, as far as the planner reads it"""
    part = SimpleNamespace(text=text)
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))], text=text)
