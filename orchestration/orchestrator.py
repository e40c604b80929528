"""
Ahrian Orchestrator
Owns the conversation lifecycle:

- PLANNING: ask the planner for a plan or a clarification question
- CLARIFICATION: park the conversation until the user picks an option, then re-plan
- EXECUTION: hand the plan to the StepExecutor and persist every state change

Every mutation of one conversation happens under that conversation's lock, so
independent conversations can run on separate threads.
"""
import threading
from typing import Sequence

from utils import get_logger
from .errors import (
    ClarificationFailure,
    ErrorCode,
    InvalidTransitionError,
    OrchestrationError,
    PlanningFailure,
)
from .events import EventEmitter
from .executor import StepExecutor
from .planner import PlanningClient, build_clarified_prompt, validate_plan
from .store import ConversationStore, InMemoryConversationStore
from .types import (
    Conversation,
    ConversationStatus,
    ExecutionInputs,
    GroundingSource,
    StepStatus,
    merge_sources,
)

logger = get_logger(__name__)

INTERRUPTED_MESSAGE = "Interrupted before completion"


class Orchestrator:
    """
    Entry point for the presentation layer.

    Flow:
    - submit_prompt(): new conversation → planning → clarification_needed | executing → completed | error
    - resolve_clarification(): clarification_needed → planning → ...
    """

    def __init__(
        self,
        planner: PlanningClient,
        executor: StepExecutor,
        store: ConversationStore | None = None,
        cycle_budget: int = 1,
        events: EventEmitter | None = None,
    ):
        if cycle_budget < 1:
            raise ValueError("cycle_budget must be at least 1")

        self.planner = planner
        self.executor = executor
        self.store = store or InMemoryConversationStore()
        self.cycle_budget = cycle_budget
        self.events = events or executor.events

        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

        self.conversations: dict[str, Conversation] = {}
        self._load()

    # ========================
    # Public API
    # ========================

    def submit_prompt(self, prompt: str, inputs: ExecutionInputs | None = None) -> Conversation:
        """Accept a new prompt and drive it as far as it can go without the user"""
        if not prompt.strip():
            raise ValueError("Prompt cannot be empty")

        conversation = Conversation(prompt=prompt, inputs=inputs or ExecutionInputs())
        try:
            with self._lock_for(conversation.id):
                self.conversations[conversation.id] = conversation
                logger.info(f"Accepted prompt for conversation {conversation.id}: {prompt[:100]}")
                self._save(conversation)
                self.events.status_changed(conversation.id, conversation.status)
                self._plan(conversation, prompt, clarifying=False)
        finally:
            self._release_lock(conversation)
        return conversation

    def resolve_clarification(self, conversation_id: str, option_key: str) -> Conversation:
        """Apply the user's clarification choice and re-plan with it"""
        conversation = self.get(conversation_id)
        try:
            with self._lock_for(conversation_id):
                if conversation.status != ConversationStatus.CLARIFICATION_NEEDED or conversation.clarification is None:
                    raise InvalidTransitionError(
                        f"Conversation {conversation_id} is not awaiting clarification ({conversation.status.value})"
                    )
                option = conversation.clarification.find_option(option_key)
                if option is None:
                    raise ValueError(f"Unknown clarification option '{option_key}' for conversation {conversation_id}")

                logger.info(f"Conversation {conversation_id}: user chose '{option.value}'")
                conversation.clarification = None
                self._set_status(conversation, ConversationStatus.PLANNING)

                clarified_prompt = build_clarified_prompt(conversation.prompt, option.value)
                self._plan(conversation, clarified_prompt, clarifying=True)
        finally:
            self._release_lock(conversation)
        return conversation

    def execute(self, conversation_id: str, inputs: ExecutionInputs | None = None) -> Conversation:
        """
        Run an already planned conversation.

        Only valid for a conversation in 'planning' status that holds a plan
        which has not started; anything else raises InvalidTransitionError.
        """
        conversation = self.get(conversation_id)
        try:
            with self._lock_for(conversation_id):
                if inputs is not None:
                    conversation.inputs = inputs
                return self.executor.execute(conversation, on_change=self._save)
        finally:
            self._release_lock(conversation)

    def get(self, conversation_id: str) -> Conversation:
        try:
            return self.conversations[conversation_id]
        except KeyError as exc:
            raise KeyError(f"Unknown conversation {conversation_id}") from exc

    def list_conversations(self) -> list[Conversation]:
        return sorted(self.conversations.values(), key=lambda c: c.created_at)

    def sources_for(self, conversation_id: str) -> list[GroundingSource]:
        """Deduplicated sources across all steps, for presenting the final answer"""
        return merge_sources(self.get(conversation_id).results)

    # ========================
    # Planning
    # ========================

    def _plan(self, conversation: Conversation, prompt: str, clarifying: bool) -> None:
        try:
            outcome = self.planner.request_plan(prompt, self._prior_conversations(conversation), self.cycle_budget)
            if outcome is None:
                raise PlanningFailure("The planner returned neither a plan nor a clarification")
            if outcome.plan is not None:
                validate_plan(outcome.plan)
        except OrchestrationError as e:
            self._fail_planning(conversation, e, clarifying)
            return
        except Exception as e:
            logger.exception(f"Planning failed for conversation {conversation.id}")
            self._fail_planning(conversation, PlanningFailure(str(e) or e.__class__.__name__), clarifying)
            return

        if outcome.clarification is not None:
            logger.info(f"Conversation {conversation.id} needs clarification: {outcome.clarification.question}")
            conversation.clarification = outcome.clarification
            self._set_status(conversation, ConversationStatus.CLARIFICATION_NEEDED)
            return

        conversation.plan = list(outcome.plan)
        logger.info(f"Conversation {conversation.id}: accepted plan with {len(conversation.plan)} steps")
        self._save(conversation)
        self.executor.execute(conversation, on_change=self._save)

    def _fail_planning(self, conversation: Conversation, error: OrchestrationError, clarifying: bool) -> None:
        if clarifying and not isinstance(error, ClarificationFailure):
            error = ClarificationFailure(error.message)
        logger.error(f"Conversation {conversation.id}: {error.code.value}: {error.message}")
        conversation.error_message = error.message
        conversation.error_code = error.code.value
        self._set_status(conversation, ConversationStatus.ERROR)

    def _prior_conversations(self, current: Conversation) -> Sequence[Conversation]:
        return [c for c in self.list_conversations() if c.id != current.id]

    # ========================
    # State & persistence
    # ========================

    def _set_status(self, conversation: Conversation, status: ConversationStatus) -> None:
        conversation.transition_to(status)
        self._save(conversation)
        self.events.status_changed(conversation.id, status)

    def _save(self, conversation: Conversation) -> None:
        """Persist a snapshot; a store failure is logged and never stalls the state machine"""
        try:
            self.store.save(conversation)
        except Exception:
            logger.exception(f"Failed to save conversation {conversation.id} ({conversation.status.value})")

    def _load(self) -> None:
        """Restore stored conversations; anything caught mid-flight is closed as an error"""
        for conversation in self.store.load_all():
            if conversation.status in (ConversationStatus.PLANNING, ConversationStatus.EXECUTING):
                for result in conversation.results:
                    if result.status == StepStatus.RUNNING:
                        result.fail(INTERRUPTED_MESSAGE)
                conversation.transition_to(ConversationStatus.ERROR)
                conversation.error_message = INTERRUPTED_MESSAGE
                conversation.error_code = ErrorCode.INTERRUPTED.value
                self._save(conversation)
                logger.warning(f"Conversation {conversation.id} was interrupted; marked as error")
            self.conversations[conversation.id] = conversation
        logger.info(f"Loaded {len(self.conversations)} stored conversations")

    def _lock_for(self, conversation_id: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(conversation_id)
            if lock is None:
                lock = self._locks[conversation_id] = threading.RLock()
            return lock

    def _release_lock(self, conversation: Conversation) -> None:
        """Terminal conversations are never mutated again, so their lock can go"""
        if conversation.is_terminal:
            with self._locks_guard:
                self._locks.pop(conversation.id, None)
