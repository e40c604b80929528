"""
Orchestration data model

Plan, step results, clarifications and the Conversation aggregate that the
engine drives from 'planning' to a terminal state.
"""
import csv
import io
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable

from .errors import InvalidTransitionError


class AgentKind(Enum):
    """The closed set of agents a plan step can be delegated to"""
    SEARCH = "SearchAgent"
    MAPS = "MapsAgent"
    VISION = "VisionAgent"
    VIDEO = "VideoAgent"
    EMAIL = "EmailAgent"
    SHEETS = "SheetsAgent"
    DRIVE = "DriveAgent"
    ORCHESTRATOR = "Orchestrator"


class StepStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class ConversationStatus(Enum):
    PLANNING = "planning"
    CLARIFICATION_NEEDED = "clarification_needed"
    EXECUTING = "executing"
    COMPLETED = "completed"
    ERROR = "error"


TERMINAL_STATUSES = frozenset({ConversationStatus.COMPLETED, ConversationStatus.ERROR})

# status -> statuses it may move to
ALLOWED_TRANSITIONS = {
    ConversationStatus.PLANNING: frozenset({
        ConversationStatus.CLARIFICATION_NEEDED,
        ConversationStatus.EXECUTING,
        ConversationStatus.ERROR,
    }),
    ConversationStatus.CLARIFICATION_NEEDED: frozenset({ConversationStatus.PLANNING}),
    ConversationStatus.EXECUTING: frozenset({ConversationStatus.COMPLETED, ConversationStatus.ERROR}),
    ConversationStatus.COMPLETED: frozenset(),
    ConversationStatus.ERROR: frozenset(),
}


def can_transition(current: ConversationStatus, target: ConversationStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class PlanStep:
    """A single step of a plan, as produced by the planner"""
    step: int
    agent: AgentKind
    task: str

    def to_dict(self) -> dict:
        return {"step": self.step, "agent": self.agent.value, "task": self.task}

    @classmethod
    def from_dict(cls, data: dict) -> "PlanStep":
        return cls(step=int(data["step"]), agent=AgentKind(data["agent"]), task=str(data["task"]))


@dataclass(frozen=True)
class GroundingSource:
    """A web or maps reference backing part of a step's result"""
    uri: str
    title: str
    agent: AgentKind

    def to_dict(self) -> dict:
        return {"uri": self.uri, "title": self.title, "agent": self.agent.value}

    @classmethod
    def from_dict(cls, data: dict) -> "GroundingSource":
        return cls(uri=data["uri"], title=data.get("title", ""), agent=AgentKind(data["agent"]))


@dataclass(frozen=True)
class ClarificationOption:
    key: str
    value: str

    def to_dict(self) -> dict:
        return {"key": self.key, "value": self.value}


@dataclass(frozen=True)
class Clarification:
    """A question the planner needs answered before it can produce a plan"""
    question: str
    options: tuple[ClarificationOption, ...]

    def __post_init__(self):
        keys = [option.key for option in self.options]
        if len(keys) != len(set(keys)):
            raise ValueError(f"Clarification option keys must be unique: {keys}")

    def find_option(self, key: str) -> ClarificationOption | None:
        for option in self.options:
            if option.key == key:
                return option
        return None

    def to_dict(self) -> dict:
        return {"question": self.question, "options": [o.to_dict() for o in self.options]}

    @classmethod
    def from_dict(cls, data: dict) -> "Clarification":
        options = tuple(
            ClarificationOption(key=str(o["key"]), value=str(o["value"]))
            for o in data.get("options", [])
        )
        return cls(question=str(data["question"]), options=options)


@dataclass
class GeneratedArtifact:
    """Tabular file produced by a sheets step"""
    name: str
    columns: list[str]
    rows: list[list[str]]
    id: str = field(default_factory=lambda: f"file-{uuid.uuid4().hex[:12]}")
    created_at: str = field(default_factory=_now)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_csv(self) -> str:
        """Export the header and every row, never a preview subset"""
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        if self.columns:
            writer.writerow(self.columns)
        writer.writerows(self.rows)
        return buffer.getvalue()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "columns": list(self.columns),
            "rows": [list(row) for row in self.rows],
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GeneratedArtifact":
        return cls(
            id=data["id"],
            name=data["name"],
            columns=list(data.get("columns", [])),
            rows=[list(row) for row in data.get("rows", [])],
            created_at=data.get("created_at") or _now(),
        )


@dataclass
class StepResult:
    """
    Mutable execution record for one plan step.

    The result buffer only grows while the step is running; once the step is
    completed or errored the buffer is frozen.
    """
    step: int
    agent: AgentKind
    task: str
    result: str = ""
    status: StepStatus = StepStatus.PENDING
    sources: list[GroundingSource] | None = None

    @classmethod
    def for_step(cls, plan_step: PlanStep) -> "StepResult":
        return cls(step=plan_step.step, agent=plan_step.agent, task=plan_step.task)

    @property
    def is_frozen(self) -> bool:
        return self.status in (StepStatus.COMPLETED, StepStatus.ERROR)

    def start(self) -> None:
        if self.status != StepStatus.PENDING:
            raise ValueError(f"Step {self.step} cannot start from status {self.status.value}")
        self.status = StepStatus.RUNNING

    def append(self, chunk: str) -> bool:
        """Append a streamed chunk. Returns False when the step no longer accepts output."""
        if self.status != StepStatus.RUNNING:
            return False
        self.result += chunk
        return True

    def complete(self, sources: list[GroundingSource] | None = None) -> None:
        if self.status != StepStatus.RUNNING:
            raise ValueError(f"Step {self.step} cannot complete from status {self.status.value}")
        self.status = StepStatus.COMPLETED
        self.sources = list(sources) if sources else None

    def fail(self, description: str) -> None:
        if self.is_frozen:
            raise ValueError(f"Step {self.step} is already {self.status.value}")
        self.status = StepStatus.ERROR
        self.result = description

    def to_dict(self) -> dict:
        return {
            "step": self.step,
            "agent": self.agent.value,
            "task": self.task,
            "result": self.result,
            "status": self.status.value,
            "sources": [s.to_dict() for s in self.sources] if self.sources is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StepResult":
        sources = data.get("sources")
        return cls(
            step=int(data["step"]),
            agent=AgentKind(data["agent"]),
            task=data["task"],
            result=data.get("result", ""),
            status=StepStatus(data.get("status", "pending")),
            sources=[GroundingSource.from_dict(s) for s in sources] if sources is not None else None,
        )


@dataclass(frozen=True)
class MediaAttachment:
    """Binary input supplied for a single invocation, never persisted"""
    data: bytes
    mime_type: str
    name: str = ""


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


@dataclass
class ExecutionInputs:
    """Transient per-invocation inputs for agents that need them"""
    image: MediaAttachment | None = None
    video: MediaAttachment | None = None
    location: Location | None = None


@dataclass
class Conversation:
    """Aggregate root: one user prompt and everything done to answer it"""
    prompt: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    plan: list[PlanStep] | None = None
    results: list[StepResult] = field(default_factory=list)
    status: ConversationStatus = ConversationStatus.PLANNING
    clarification: Clarification | None = None
    artifacts: list[GeneratedArtifact] = field(default_factory=list)
    error_message: str | None = None
    error_code: str | None = None
    created_at: str = field(default_factory=_now)
    # Transient - excluded from to_dict()
    inputs: ExecutionInputs = field(default_factory=ExecutionInputs, repr=False, compare=False)

    @property
    def generated_artifact(self) -> GeneratedArtifact | None:
        """The most recently produced artifact; all of them remain in `artifacts`"""
        return self.artifacts[-1] if self.artifacts else None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def transition_to(self, status: ConversationStatus) -> None:
        """Move to `status`, raising InvalidTransitionError when the state machine forbids it"""
        if not can_transition(self.status, status):
            raise InvalidTransitionError(
                f"Conversation {self.id} cannot move from {self.status.value} to {status.value}"
            )
        self.status = status

    def result_for(self, step: int) -> StepResult:
        for result in self.results:
            if result.step == step:
                return result
        raise KeyError(f"No result for step {step} in conversation {self.id}")

    def final_answer(self) -> str | None:
        """Result text of the synthesis step, when the conversation completed"""
        if self.status != ConversationStatus.COMPLETED or not self.results:
            return None
        last = self.results[-1]
        return last.result if last.agent == AgentKind.ORCHESTRATOR else None

    def to_dict(self) -> dict:
        """Serializable record for the conversation store (no transient inputs)"""
        return {
            "id": self.id,
            "prompt": self.prompt,
            "plan": [s.to_dict() for s in self.plan] if self.plan is not None else None,
            "results": [r.to_dict() for r in self.results],
            "status": self.status.value,
            "clarification": self.clarification.to_dict() if self.clarification else None,
            "artifacts": [a.to_dict() for a in self.artifacts],
            "error_message": self.error_message,
            "error_code": self.error_code,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Conversation":
        plan = data.get("plan")
        clarification = data.get("clarification")
        return cls(
            id=data["id"],
            prompt=data["prompt"],
            plan=[PlanStep.from_dict(s) for s in plan] if plan is not None else None,
            results=[StepResult.from_dict(r) for r in data.get("results", [])],
            status=ConversationStatus(data["status"]),
            clarification=Clarification.from_dict(clarification) if clarification else None,
            artifacts=[GeneratedArtifact.from_dict(a) for a in data.get("artifacts", [])],
            error_message=data.get("error_message"),
            error_code=data.get("error_code"),
            created_at=data.get("created_at") or _now(),
        )


def merge_sources(results: Iterable[StepResult]) -> list[GroundingSource]:
    """
    Merge every step's sources into one list, deduplicated by uri.

    The first occurrence of a uri wins and keeps its position; steps are walked
    in the order given, so the output is stable for identical inputs.
    """
    seen: set[str] = set()
    merged: list[GroundingSource] = []
    for result in results:
        for source in result.sources or []:
            if source.uri in seen:
                continue
            seen.add(source.uri)
            merged.append(source)
    return merged
