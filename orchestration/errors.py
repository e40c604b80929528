"""
Orchestration errors

Failures raised by collaborators are wrapped into one of these at the engine
seam and end the conversation in the 'error' state. None of them are retried.
"""
from enum import Enum


class ErrorCode(Enum):
    PLANNING_FAILED = "planning_failed"
    INVALID_PLAN = "invalid_plan"
    STEP_FAILED = "step_failed"
    STEP_TIMEOUT = "step_timeout"
    MISSING_INPUT = "missing_input"
    CLARIFICATION_FAILED = "clarification_failed"
    INTERRUPTED = "interrupted"


class OrchestrationError(Exception):
    """Base class for failures that terminate a conversation"""
    code: ErrorCode = ErrorCode.STEP_FAILED

    def __init__(self, message: str, code: ErrorCode | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class PlanningFailure(OrchestrationError):
    """The planner raised, or returned neither a plan nor a clarification"""
    code = ErrorCode.PLANNING_FAILED


class StepFailure(OrchestrationError):
    """A dispatch target raised, stalled, or returned an unusable result"""
    code = ErrorCode.STEP_FAILED

    def __init__(self, message: str, step: int | None = None, code: ErrorCode | None = None):
        super().__init__(message, code)
        self.step = step


class ClarificationFailure(OrchestrationError):
    """Re-planning after a clarification choice did not produce a plan"""
    code = ErrorCode.CLARIFICATION_FAILED


class InvalidTransitionError(ValueError):
    """An operation was requested in a conversation state that does not allow it"""
