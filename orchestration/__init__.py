"""
Orchestration Module - multi-agent conversation engine

This module provides the PLANNING → (CLARIFICATION) → EXECUTION workflow:
- Orchestrator: conversation lifecycle, clarification round-trips, persistence
- StepExecutor: sequential step dispatch, streaming, context chaining, pacing
- GeminiPlanner: plan or clarification from the planning model
- Conversation stores: in-memory and Supabase
"""
from .types import (
    AgentKind,
    Clarification,
    ClarificationOption,
    Conversation,
    ConversationStatus,
    ExecutionInputs,
    GeneratedArtifact,
    GroundingSource,
    Location,
    MediaAttachment,
    PlanStep,
    StepResult,
    StepStatus,
    merge_sources,
)
from .errors import (
    ClarificationFailure,
    ErrorCode,
    InvalidTransitionError,
    OrchestrationError,
    PlanningFailure,
    StepFailure,
)
from .events import EventEmitter, EventKind, ExecutionEvent
from .pacing import fixed_pacing, no_pacing
from .agent_registry import AgentRegistry
from .executor import StepExecutor
from .planner import GeminiPlanner, PlanOutcome, PlanningClient, build_clarified_prompt
from .store import ConversationStore, InMemoryConversationStore, SupabaseConversationStore
from .orchestrator import Orchestrator

__all__ = [
    # Main orchestrator
    "Orchestrator",
    "StepExecutor",
    "AgentRegistry",
    # Planning
    "GeminiPlanner",
    "PlanOutcome",
    "PlanningClient",
    "build_clarified_prompt",
    # Persistence
    "ConversationStore",
    "InMemoryConversationStore",
    "SupabaseConversationStore",
    # Events & pacing
    "EventEmitter",
    "EventKind",
    "ExecutionEvent",
    "fixed_pacing",
    "no_pacing",
    # Data model
    "AgentKind",
    "Clarification",
    "ClarificationOption",
    "Conversation",
    "ConversationStatus",
    "ExecutionInputs",
    "GeneratedArtifact",
    "GroundingSource",
    "Location",
    "MediaAttachment",
    "PlanStep",
    "StepResult",
    "StepStatus",
    "merge_sources",
    # Errors
    "ClarificationFailure",
    "ErrorCode",
    "InvalidTransitionError",
    "OrchestrationError",
    "PlanningFailure",
    "StepFailure",
]
