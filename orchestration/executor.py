"""
Step Executor
Responsible for the EXECUTION phase of a conversation.

The executor:
1. Creates one StepResult per plan step, all pending
2. Runs steps strictly one after another, streaming chunks into each buffer
3. Chains completed results forward as context for later steps and synthesis
4. Stops at the first failure and leaves completed steps intact for inspection
"""
import threading
import time
from collections import deque
from typing import Callable

from .agent_registry import AgentRegistry
from .contracts import (
    AgentRequest,
    AuxInput,
    IntermediateOrchestrator,
    StepOutput,
    SynthesisClient,
)
from utils import get_logger
from .errors import ErrorCode, InvalidTransitionError, OrchestrationError, StepFailure
from .events import EventEmitter
from .pacing import PacingPolicy, fixed_pacing, sleep_for
from .types import (
    AgentKind,
    Conversation,
    ConversationStatus,
    PlanStep,
    StepResult,
    StepStatus,
)

logger = get_logger(__name__)

ChangeCallback = Callable[[Conversation], None]

EXECUTION_LOG_LIMIT = 500


class StepExecutor:
    """
    Runs a conversation's plan to a terminal state.

    Key responsibilities:
    - Dispatch each step to synthesis, an intermediate orchestrator, or the
      registered agent for its kind
    - Append streamed chunks in emission order, freeze buffers on completion
    - Fail fast: the first failing step ends the conversation in 'error'
    - Pace successful steps with an injectable delay
    """

    def __init__(
        self,
        registry: AgentRegistry,
        synthesizer: SynthesisClient,
        intermediate: IntermediateOrchestrator,
        pacing: PacingPolicy | None = None,
        sleep: Callable[[float], None] = sleep_for,
        step_timeout: float | None = None,
        events: EventEmitter | None = None,
        execution_log_limit: int = EXECUTION_LOG_LIMIT,
    ):
        self.registry = registry
        self.synthesizer = synthesizer
        self.intermediate = intermediate
        self.pacing = pacing or fixed_pacing()
        self.sleep = sleep
        self.step_timeout = step_timeout
        self.events = events or EventEmitter()
        # Shared by every conversation; only the most recent entries are kept
        self.execution_log: deque[dict] = deque(maxlen=execution_log_limit)

    def execute(self, conversation: Conversation, on_change: ChangeCallback | None = None) -> Conversation:
        """
        Execute every step of the conversation's plan.

        Args:
            conversation: A conversation in 'planning' status holding a non-empty plan
            on_change: Called after every observable state change (persistence hook)

        Returns:
            The same conversation, now 'completed' or 'error'
        """
        if conversation.status != ConversationStatus.PLANNING:
            raise InvalidTransitionError(
                f"Cannot execute conversation {conversation.id} in status {conversation.status.value}"
            )
        if not conversation.plan:
            raise InvalidTransitionError(f"Conversation {conversation.id} has no plan to execute")

        notify = on_change or (lambda _: None)
        plan = conversation.plan
        total = len(plan)

        logger.info(f"Starting execution of {total} steps for conversation {conversation.id}")

        conversation.results = [StepResult.for_step(s) for s in plan]
        self._set_status(conversation, ConversationStatus.EXECUTING)
        notify(conversation)

        context: list[StepResult] = []

        for index, plan_step in enumerate(plan):
            result = conversation.results[index]
            is_last = index == total - 1

            result.start()
            self.events.step_status(conversation.id, result.step, StepStatus.RUNNING)
            notify(conversation)

            started = time.perf_counter()
            try:
                self._execute_step(conversation, plan_step, is_last, context, result)
            except OrchestrationError as e:
                self._fail(conversation, result, e, started)
                notify(conversation)
                return conversation

            duration = time.perf_counter() - started
            self.execution_log.append({
                "conversation_id": conversation.id,
                "step": result.step,
                "agent": result.agent.value,
                "status": "completed",
                "duration": duration,
                "result_preview": result.result[:200],
            })
            logger.info(f"Step {result.step} ({result.agent.value}) completed in {duration:.2f}s")

            context.append(result)
            self.events.step_status(conversation.id, result.step, StepStatus.COMPLETED, text=result.result)
            notify(conversation)

            if not is_last:
                self.sleep(self.pacing(index, total))

        self._set_status(conversation, ConversationStatus.COMPLETED)
        notify(conversation)
        logger.info(f"Conversation {conversation.id} completed: all {total} steps succeeded")
        return conversation

    def _execute_step(
        self,
        conversation: Conversation,
        plan_step: PlanStep,
        is_last: bool,
        context: list[StepResult],
        result: StepResult,
    ) -> None:
        # Guards the buffer against a timed-out worker still streaming
        buffer_lock = threading.Lock()

        def on_chunk(chunk: str) -> None:
            if not chunk:
                return
            with buffer_lock:
                if not result.append(chunk):
                    logger.debug(f"Dropping late chunk for frozen step {result.step}")
                    return
                text = result.result
            self.events.chunk(conversation.id, result.step, chunk, text)

        # Later steps only ever see fully completed predecessors
        snapshot = list(context)

        def dispatch() -> StepOutput:
            return self._dispatch(conversation, plan_step, is_last, snapshot, on_chunk)

        try:
            output = self._run_with_timeout(dispatch, plan_step)
            if output is None:
                raise StepFailure(f"Agent {plan_step.agent.value} returned no result", step=plan_step.step)
        except OrchestrationError as e:
            with buffer_lock:
                result.fail(e.message)
            raise
        except Exception as e:
            logger.exception(f"Step execution failed: {plan_step.step} ({plan_step.agent.value})")
            failure = StepFailure(str(e) or e.__class__.__name__, step=plan_step.step)
            with buffer_lock:
                result.fail(failure.message)
            raise failure from e

        with buffer_lock:
            if output.text and not result.result:
                result.append(output.text)
            result.complete(output.sources)

        if output.artifact is not None:
            conversation.artifacts.append(output.artifact)
            logger.info(
                f"Step {plan_step.step} produced artifact '{output.artifact.name}' "
                f"with {output.artifact.row_count} rows"
            )

    def _dispatch(
        self,
        conversation: Conversation,
        plan_step: PlanStep,
        is_last: bool,
        context: list[StepResult],
        on_chunk,
    ) -> StepOutput:
        if plan_step.agent == AgentKind.ORCHESTRATOR:
            if is_last:
                logger.info(f"Synthesizing final answer from {len(context)} context entries")
                return self.synthesizer.run(conversation.prompt, context, on_chunk)
            logger.info(f"Running intermediate orchestrator step {plan_step.step}")
            return self.intermediate.run(plan_step.task, conversation.prompt, context, on_chunk)

        if plan_step.agent not in self.registry:
            raise StepFailure(f"No executor registered for agent '{plan_step.agent.value}'", step=plan_step.step)
        executor = self.registry.get(plan_step.agent)
        request = self._build_request(conversation, plan_step, executor, context)
        logger.info(f"Executing step {plan_step.step} with {plan_step.agent.value}: {plan_step.task[:100]}")
        return executor.run(request, on_chunk)

    def _build_request(self, conversation, plan_step, executor, context) -> AgentRequest:
        """Attach the one auxiliary input the executor declares it needs"""
        requires = getattr(executor, "requires", AuxInput.NONE)
        inputs = conversation.inputs

        if requires == AuxInput.LOCATION:
            return AgentRequest(task=plan_step.task, location=inputs.location)
        if requires == AuxInput.PREVIOUS_RESULT:
            previous = context[-1].result if context else ""
            return AgentRequest(task=plan_step.task, previous_result=previous)
        if requires in (AuxInput.IMAGE, AuxInput.VIDEO):
            media = inputs.image if requires == AuxInput.IMAGE else inputs.video
            if media is None:
                raise StepFailure(
                    f"{plan_step.agent.value} needs an attached {requires.value} but none was provided",
                    step=plan_step.step,
                    code=ErrorCode.MISSING_INPUT,
                )
            return AgentRequest(task=plan_step.task, media=media)
        return AgentRequest(task=plan_step.task)

    def _run_with_timeout(self, call: Callable[[], StepOutput], plan_step: PlanStep) -> StepOutput:
        if self.step_timeout is None:
            return call()

        outcome: dict = {}

        def worker() -> None:
            try:
                outcome["output"] = call()
            except Exception as e:
                outcome["error"] = e

        # Daemon so a stalled agent never keeps the process alive at exit
        thread = threading.Thread(target=worker, name=f"step-{plan_step.step}", daemon=True)
        thread.start()
        thread.join(self.step_timeout)

        if thread.is_alive():
            # The worker is abandoned; its late chunks are dropped
            raise StepFailure(
                f"Step {plan_step.step} ({plan_step.agent.value}) timed out after {self.step_timeout:g}s",
                step=plan_step.step,
                code=ErrorCode.STEP_TIMEOUT,
            )
        if "error" in outcome:
            raise outcome["error"]
        return outcome.get("output")

    def _fail(self, conversation: Conversation, result: StepResult, error: OrchestrationError, started: float) -> None:
        description = error.message
        self.execution_log.append({
            "conversation_id": conversation.id,
            "step": result.step,
            "agent": result.agent.value,
            "status": "failed",
            "duration": time.perf_counter() - started,
            "error": description,
        })
        logger.error(f"Step {result.step} ({result.agent.value}) failed: {description}")

        conversation.error_message = description
        conversation.error_code = error.code.value
        self.events.step_status(conversation.id, result.step, StepStatus.ERROR, text=description)
        self._set_status(conversation, ConversationStatus.ERROR)

    def _set_status(self, conversation: Conversation, status: ConversationStatus) -> None:
        conversation.transition_to(status)
        self.events.status_changed(conversation.id, status)

    def get_execution_log(self) -> list[dict]:
        """Get the full execution log for debugging/audit"""
        return list(self.execution_log)

    def clear_execution_log(self) -> None:
        self.execution_log.clear()
