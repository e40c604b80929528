"""
Agent contracts
The contract every step-executing agent implements, and the request/response
shapes that flow through it.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Protocol, Sequence

from .types import (
    GeneratedArtifact,
    GroundingSource,
    Location,
    MediaAttachment,
    StepResult,
)

ChunkCallback = Callable[[str], None]


class AuxInput(Enum):
    """Extra input an agent needs besides its task"""
    NONE = "none"
    LOCATION = "location"
    PREVIOUS_RESULT = "previous_result"  # only the immediately preceding completed step
    IMAGE = "image"
    VIDEO = "video"


@dataclass(frozen=True)
class AgentRequest:
    task: str
    location: Location | None = None
    previous_result: str | None = None
    media: MediaAttachment | None = None


@dataclass
class StepOutput:
    """
    What a dispatch target hands back once its stream is finished.

    `text` is only used when the target streamed nothing; streamed chunks are
    the normal way a result reaches the step buffer.
    """
    sources: list[GroundingSource] = field(default_factory=list)
    artifact: GeneratedArtifact | None = None
    text: str | None = None


class AgentExecutor(Protocol):
    """Runs one plan step for a specific agent kind"""

    requires: AuxInput

    def run(self, request: AgentRequest, on_chunk: ChunkCallback) -> StepOutput:
        ...


class IntermediateOrchestrator(Protocol):
    """Reasoning step in the middle of a plan, sees all completed context"""

    def run(
        self,
        task: str,
        original_prompt: str,
        context: Sequence[StepResult],
        on_chunk: ChunkCallback,
    ) -> StepOutput:
        ...


class SynthesisClient(Protocol):
    """Final step: turns the prompt and all completed context into the answer"""

    def run(
        self,
        original_prompt: str,
        context: Sequence[StepResult],
        on_chunk: ChunkCallback,
    ) -> StepOutput:
        ...
