"""
Agents - the executors that carry out individual plan steps
"""
from orchestration.agent_registry import AgentRegistry
from orchestration.contracts import (
    AgentExecutor,
    AgentRequest,
    AuxInput,
    ChunkCallback,
    IntermediateOrchestrator,
    StepOutput,
    SynthesisClient,
)
from orchestration.types import AgentKind
from services import GeminiService
from .search_agent import SearchAgent
from .maps_agent import MapsAgent
from .media_agents import VisionAgent, VideoAgent
from .workspace_agents import EmailAgent, DriveAgent
from .sheets_agent import SheetsAgent
from .orchestrator_agents import ReasoningAgent, SynthesisAgent


def build_default_registry(service: GeminiService) -> AgentRegistry:
    """Registry with a Gemini-backed executor for every agent kind"""
    return AgentRegistry({
        AgentKind.SEARCH: SearchAgent(service),
        AgentKind.MAPS: MapsAgent(service),
        AgentKind.VISION: VisionAgent(service),
        AgentKind.VIDEO: VideoAgent(service),
        AgentKind.EMAIL: EmailAgent(service),
        AgentKind.SHEETS: SheetsAgent(service),
        AgentKind.DRIVE: DriveAgent(service),
    })


__all__ = [
    "AgentExecutor",
    "AgentRequest",
    "AuxInput",
    "ChunkCallback",
    "IntermediateOrchestrator",
    "StepOutput",
    "SynthesisClient",
    "AgentRegistry",
    "SearchAgent",
    "MapsAgent",
    "VisionAgent",
    "VideoAgent",
    "EmailAgent",
    "DriveAgent",
    "SheetsAgent",
    "ReasoningAgent",
    "SynthesisAgent",
    "build_default_registry",
]
