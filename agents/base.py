"""
Base class for Gemini-backed agents
Subclasses pick the system instruction, the tools, the auxiliary input they
need and how the request becomes model contents.
"""
from google.genai import types

from orchestration.types import AgentKind
from orchestration.contracts import AgentRequest, AuxInput, ChunkCallback, StepOutput
from services import GeminiService
from utils import get_logger

logger = get_logger(__name__)


class GeminiAgent:
    kind: AgentKind
    requires: AuxInput = AuxInput.NONE
    system_instruction: str = ""
    temperature: float = 0.7

    def __init__(self, service: GeminiService):
        self.service = service

    def run(self, request: AgentRequest, on_chunk: ChunkCallback) -> StepOutput:
        logger.info(f"{self.kind.value} running: {request.task[:100]}")
        sources = self.service.stream_text(
            self.build_contents(request),
            on_chunk,
            agent=self.kind,
            system_instruction=self.system_instruction,
            tools=self.tools(request),
            tool_config=self.tool_config(request),
            temperature=self.temperature,
        )
        return StepOutput(sources=sources)

    def build_contents(self, request: AgentRequest) -> list[types.Content]:
        return [types.Content(role="user", parts=[types.Part(text=request.task)])]

    def tools(self, request: AgentRequest) -> list[types.Tool] | None:
        return None

    def tool_config(self, request: AgentRequest) -> types.ToolConfig | None:
        return None
