"""
Execution events
A one-way channel from the engine to whoever renders progress. Observers get
immutable snapshots; they never touch the engine's StepResult objects.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from utils import get_logger
from .types import ConversationStatus, StepStatus

logger = get_logger(__name__)


class EventKind(Enum):
    STATUS_CHANGED = "status_changed"
    STEP_STATUS = "step_status"
    CHUNK = "chunk"


@dataclass(frozen=True)
class ExecutionEvent:
    kind: EventKind
    conversation_id: str
    status: ConversationStatus | None = None
    step: int | None = None
    step_status: StepStatus | None = None
    chunk: str | None = None
    text: str | None = None  # full step buffer after a chunk or on completion


Observer = Callable[[ExecutionEvent], None]


class EventEmitter:
    """Fan out events to observers; a failing observer never breaks execution"""

    def __init__(self, observers: list[Observer] | None = None):
        self._observers: list[Observer] = list(observers or [])

    def subscribe(self, observer: Observer) -> None:
        self._observers.append(observer)

    def unsubscribe(self, observer: Observer) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def emit(self, event: ExecutionEvent) -> None:
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception:
                logger.exception(f"Observer failed on {event.kind.value} event")

    def status_changed(self, conversation_id: str, status: ConversationStatus) -> None:
        self.emit(ExecutionEvent(EventKind.STATUS_CHANGED, conversation_id, status=status))

    def step_status(self, conversation_id: str, step: int, status: StepStatus, text: str | None = None) -> None:
        self.emit(ExecutionEvent(EventKind.STEP_STATUS, conversation_id, step=step, step_status=status, text=text))

    def chunk(self, conversation_id: str, step: int, chunk: str, text: str) -> None:
        self.emit(ExecutionEvent(EventKind.CHUNK, conversation_id, step=step, chunk=chunk, text=text))
