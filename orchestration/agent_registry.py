"""
Agent registry
Maps each AgentKind to the executor that runs its steps. Adding an agent means
registering it here, never widening a conditional in the engine.
"""
from .types import AgentKind
from utils import get_logger
from .contracts import AgentExecutor

logger = get_logger(__name__)


class AgentRegistry:

    def __init__(self, executors: dict[AgentKind, AgentExecutor] | None = None):
        self._executors: dict[AgentKind, AgentExecutor] = {}
        for kind, executor in (executors or {}).items():
            self.register(kind, executor)

    def register(self, kind: AgentKind, executor: AgentExecutor) -> None:
        if kind == AgentKind.ORCHESTRATOR:
            raise ValueError("Orchestrator steps are dispatched to the synthesis/intermediate executors")
        if kind in self._executors:
            logger.info(f"Replacing executor for {kind.value}")
        self._executors[kind] = executor

    def get(self, kind: AgentKind) -> AgentExecutor:
        try:
            return self._executors[kind]
        except KeyError as exc:
            raise KeyError(f"No executor registered for agent '{kind.value}'") from exc

    def __contains__(self, kind: AgentKind) -> bool:
        return kind in self._executors

    def kinds(self) -> list[AgentKind]:
        return list(self._executors)
