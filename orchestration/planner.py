"""
Agent Planner
Responsible for the PLANNING phase of a conversation.

The planner:
1. Summarizes the user's recent conversations as prior context
2. Asks the LLM for either an ordered plan of agent steps or a clarification question
3. Optionally refines the draft plan over several passes (the cycle budget)
4. Validates the plan before anything is executed
"""
import json
from dataclasses import dataclass
from typing import Protocol, Sequence

from google import genai
from google.genai import types

from config import settings
from registry import AGENT_CATALOG, PLAN_RESPONSE_SCHEMA
from utils import get_logger
from .errors import ErrorCode, PlanningFailure
from .types import AgentKind, Clarification, Conversation, PlanStep

logger = get_logger(__name__)


PLANNING_SYSTEM_PROMPT = """You are the planner of a team of AI agents. Your job is to break the user's request into a short, ordered plan of steps, each handled by exactly one agent.

Available agents:
{agents}

Rules:
- Number steps from 1 in execution order.
- Each task must be self-contained: the agent only sees its task (and, for SheetsAgent, the output of the step right before it).
- The last step must always be an Orchestrator step that writes the final answer for the user.
- Use VisionAgent or VideoAgent only when the user attached that kind of media.
- If the request is ambiguous in a way that changes the plan, do not guess: ask ONE clarification question with 2-4 short options instead of returning a plan.

Respond with a JSON object only, no markdown, matching this schema:
{schema}

Return either {{"plan": [...]}} or {{"clarification": {{...}}}}, never both.
"""

REFINE_INSTRUCTIONS = """Here is a draft plan for the request above:

{draft}

Review it critically. Merge redundant steps, split steps that ask one agent to do two unrelated things, and make every task self-contained. Keep the final Orchestrator step. Respond with the improved plan as a JSON object in the same format."""


@dataclass(frozen=True)
class PlanOutcome:
    """Exactly one of a plan or a clarification"""
    plan: list[PlanStep] | None = None
    clarification: Clarification | None = None

    def __post_init__(self):
        if (self.plan is None) == (self.clarification is None):
            raise ValueError("PlanOutcome must hold exactly one of plan or clarification")


class PlanningClient(Protocol):

    def request_plan(
        self,
        prompt: str,
        prior_conversations: Sequence[Conversation],
        cycle_budget: int,
    ) -> PlanOutcome:
        ...


def build_clarified_prompt(original_prompt: str, chosen_value: str) -> str:
    """Re-planning prompt that carries both the original request and the user's choice"""
    return (
        f'The user\'s original request was: "{original_prompt}". '
        f'I asked for clarification, and the user chose: "{chosen_value}". '
        "Now, please generate the execution plan based on this clarified request."
    )


def validate_plan(steps: list[PlanStep]) -> list[PlanStep]:
    """
    Check ordering rules of a parsed plan.

    Steps must start at 1 and strictly increase. Orchestrator steps before the
    last one are intermediate reasoning steps; only the final one synthesizes.
    """
    if not steps:
        raise PlanningFailure("The planner returned an empty plan", code=ErrorCode.INVALID_PLAN)

    previous = 0
    for plan_step in steps:
        if plan_step.step <= previous:
            raise PlanningFailure(
                f"Plan steps must increase from 1; got step {plan_step.step} after {previous}",
                code=ErrorCode.INVALID_PLAN,
            )
        if not plan_step.task.strip():
            raise PlanningFailure(f"Plan step {plan_step.step} has an empty task", code=ErrorCode.INVALID_PLAN)
        previous = plan_step.step

    if steps[0].step != 1:
        raise PlanningFailure(f"Plan must start at step 1, not {steps[0].step}", code=ErrorCode.INVALID_PLAN)
    return steps


def _strip_code_fence(text: str) -> str:
    json_text = text.strip()
    if json_text.startswith("```"):
        lines = [line for line in json_text.split("\n") if not line.startswith("```")]
        json_text = "\n".join(lines)
    return json_text


def parse_plan_response(response_text: str) -> PlanOutcome:
    """Parse the planner's JSON answer into a PlanOutcome"""
    try:
        data = json.loads(_strip_code_fence(response_text))
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse plan JSON: {e}")
        logger.error(f"Response was: {response_text[:500]}")
        raise PlanningFailure(f"The planner returned invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise PlanningFailure("The planner response must be a JSON object")

    # A clarification wins over a plan if the model sent both
    clarification_data = data.get("clarification")
    if clarification_data:
        try:
            clarification = Clarification.from_dict(clarification_data)
        except (KeyError, TypeError, ValueError) as e:
            raise PlanningFailure(f"The planner returned a malformed clarification: {e}") from e
        if not clarification.options:
            raise PlanningFailure("The planner asked for clarification without any options")
        return PlanOutcome(clarification=clarification)

    plan_data = data.get("plan")
    if plan_data is None:
        raise PlanningFailure("The planner returned neither a plan nor a clarification")
    try:
        steps = [PlanStep.from_dict(step) for step in plan_data]
    except (KeyError, TypeError, ValueError) as e:
        raise PlanningFailure(f"The planner returned a malformed plan step: {e}", code=ErrorCode.INVALID_PLAN) from e
    return PlanOutcome(plan=validate_plan(steps))


def summarize_prior_conversations(conversations: Sequence[Conversation], limit: int) -> str:
    """Short digest of the most recent conversations for the planning prompt"""
    recent = [c for c in conversations if c.prompt][-limit:] if limit > 0 else []
    if not recent:
        return ""
    parts = ["## PREVIOUS CONVERSATIONS"]
    for conversation in recent:
        parts.append(f"- User asked: {conversation.prompt[:200]}")
        answer = conversation.final_answer()
        if answer:
            parts.append(f"  Answer: {answer[:300]}")
        elif conversation.error_message:
            parts.append(f"  Failed: {conversation.error_message[:200]}")
    return "\n".join(parts)


class GeminiPlanner:
    """
    Planning client backed by Gemini.

    cycle_budget is the number of passes: one draft, then refinement passes
    that feed the previous draft back. A clarification from any pass ends the
    loop immediately.
    """

    def __init__(
        self,
        client: genai.Client,
        model_name: str | None = None,
        history_limit: int | None = None,
    ):
        self.client = client
        self.model_name = model_name or settings.PLANNER_MODEL_NAME
        self.history_limit = settings.PRIOR_CONVERSATIONS_LIMIT if history_limit is None else history_limit
        self.system_prompt = PLANNING_SYSTEM_PROMPT.format(
            agents="\n".join(f"- {a['name']}: {a['description']}" for a in AGENT_CATALOG),
            schema=json.dumps(PLAN_RESPONSE_SCHEMA, indent=2),
        )

    def request_plan(
        self,
        prompt: str,
        prior_conversations: Sequence[Conversation],
        cycle_budget: int,
    ) -> PlanOutcome:
        logger.info(f"Creating plan for: {prompt[:100]}... ({cycle_budget} cycle(s))")

        history = summarize_prior_conversations(prior_conversations, self.history_limit)
        request_text = f"{history}\n\n## USER REQUEST\n{prompt}" if history else f"## USER REQUEST\n{prompt}"
        contents = [types.Content(role="user", parts=[types.Part(text=request_text)])]

        outcome = None
        for cycle in range(max(1, cycle_budget)):
            response_text = self._generate(contents)
            logger.info(f"LLM plan response (cycle {cycle + 1}): {response_text[:500]}...")
            outcome = parse_plan_response(response_text)
            if outcome.clarification is not None:
                return outcome

            draft = json.dumps({"plan": [s.to_dict() for s in outcome.plan]}, indent=2)
            contents = contents + [
                types.Content(role="model", parts=[types.Part(text=response_text)]),
                types.Content(role="user", parts=[types.Part(text=REFINE_INSTRUCTIONS.format(draft=draft))]),
            ]

        logger.info(f"Created plan with {len(outcome.plan)} steps")
        return outcome

    def _generate(self, contents: list[types.Content]) -> str:
        response = self.client.models.generate_content(
            model=self.model_name,
            contents=contents,
            config=types.GenerateContentConfig(
                system_instruction=self.system_prompt,
                response_mime_type="application/json",
                temperature=0.3,  # Lower temp for more consistent planning
            ),
        )

        text_parts = []
        for candidate in response.candidates or []:
            if candidate.content and candidate.content.parts:
                for part in candidate.content.parts:
                    if part.text:
                        text_parts.append(part.text)
        if not text_parts:
            raise PlanningFailure("The planner returned an empty response")
        return "".join(text_parts)
