"""
Orchestrator agents
- ReasoningAgent: an Orchestrator step in the middle of a plan
- SynthesisAgent: the final Orchestrator step that writes the user-facing answer
Both see the completed results of every earlier step.
"""
from typing import Sequence

from orchestration.types import AgentKind, StepResult, merge_sources
from orchestration.contracts import ChunkCallback, StepOutput
from services import GeminiService, user_text
from utils import get_logger

logger = get_logger(__name__)

REASONING_SYSTEM_PROMPT = """You are the orchestrator of a team of agents, working on an intermediate step of a plan.
Use the results gathered so far to carry out the step's task: compare, filter, rank or decide.
Your output will be handed to the next agents, so be explicit and structured."""

SYNTHESIS_SYSTEM_PROMPT = """You are the orchestrator of a team of agents. The agents have finished their work.
Write the final answer to the user's request from their results:
- Answer the request directly first, then give supporting detail.
- Use only information present in the results; say what is missing if something is.
- Use Markdown for structure where it helps. Do not mention the agents or the plan."""


def format_context(context: Sequence[StepResult]) -> str:
    if not context:
        return "No earlier steps produced results."
    blocks = []
    for result in context:
        blocks.append(f"### Step {result.step} ({result.agent.value})\nTask: {result.task}\nResult:\n{result.result}")
    return "\n\n".join(blocks)


class ReasoningAgent:

    def __init__(self, service: GeminiService):
        self.service = service

    def run(
        self,
        task: str,
        original_prompt: str,
        context: Sequence[StepResult],
        on_chunk: ChunkCallback,
    ) -> StepOutput:
        prompt = (
            f"## USER REQUEST\n{original_prompt}\n\n"
            f"## RESULTS SO FAR\n{format_context(context)}\n\n"
            f"## YOUR TASK\n{task}"
        )
        self.service.stream_text(
            user_text(prompt),
            on_chunk,
            agent=AgentKind.ORCHESTRATOR,
            system_instruction=REASONING_SYSTEM_PROMPT,
            temperature=0.4,
        )
        return StepOutput()


class SynthesisAgent:

    def __init__(self, service: GeminiService):
        self.service = service

    def run(
        self,
        original_prompt: str,
        context: Sequence[StepResult],
        on_chunk: ChunkCallback,
    ) -> StepOutput:
        logger.info(f"Synthesizing answer from {len(context)} step results")
        prompt = f"## USER REQUEST\n{original_prompt}\n\n## AGENT RESULTS\n{format_context(context)}"
        self.service.stream_text(
            user_text(prompt),
            on_chunk,
            agent=AgentKind.ORCHESTRATOR,
            system_instruction=SYNTHESIS_SYSTEM_PROMPT,
        )
        return StepOutput(sources=merge_sources(context))
