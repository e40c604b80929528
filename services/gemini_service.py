"""
Gemini Service
Thin wrapper over the google-genai client shared by every agent:
streaming text generation with grounding sources, and JSON generation.
"""
import json
from typing import Callable

from google import genai
from google.genai import types

from config import settings
from orchestration.types import AgentKind, GroundingSource
from utils import get_logger

logger = get_logger(__name__)


def extract_sources(response: types.GenerateContentResponse, agent: AgentKind) -> list[GroundingSource]:
    """Pull web and maps grounding references out of a (partial) response"""
    sources = []
    for candidate in response.candidates or []:
        metadata = candidate.grounding_metadata
        if not metadata or not metadata.grounding_chunks:
            continue
        for chunk in metadata.grounding_chunks:
            reference = getattr(chunk, "web", None) or getattr(chunk, "maps", None)
            if reference is None or not reference.uri:
                continue
            sources.append(GroundingSource(uri=reference.uri, title=reference.title or reference.uri, agent=agent))
    return sources


class GeminiService:

    def __init__(self, client: genai.Client, model_name: str | None = None):
        self.client = client
        self.model_name = model_name or settings.MODEL_NAME

    def stream_text(
        self,
        contents: list[types.Content],
        on_chunk: Callable[[str], None],
        agent: AgentKind,
        system_instruction: str | None = None,
        tools: list[types.Tool] | None = None,
        tool_config: types.ToolConfig | None = None,
        temperature: float = 0.7,
    ) -> list[GroundingSource]:
        """
        Stream a response chunk by chunk into on_chunk.

        Returns the grounding sources seen across the stream, first occurrence
        of each uri only.
        """
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            tools=tools,
            tool_config=tool_config,
            temperature=temperature,
        )
        sources: list[GroundingSource] = []
        seen: set[str] = set()
        received = 0

        for chunk in self.client.models.generate_content_stream(
            model=self.model_name,
            contents=contents,
            config=config,
        ):
            text = chunk.text
            if text:
                received += len(text)
                on_chunk(text)
            for source in extract_sources(chunk, agent):
                if source.uri not in seen:
                    seen.add(source.uri)
                    sources.append(source)

        logger.info(f"{agent.value}: streamed {received} chars, {len(sources)} sources")
        return sources

    def generate_json(
        self,
        contents: list[types.Content],
        system_instruction: str | None = None,
        temperature: float = 0.2,
    ) -> dict:
        response = self.client.models.generate_content(
            model=self.model_name,
            contents=contents,
            config=types.GenerateContentConfig(
                system_instruction=system_instruction,
                response_mime_type="application/json",
                temperature=temperature,
            ),
        )
        text = response.text or ""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON from model: {text[:500]}")
            raise ValueError(f"Model returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ValueError("Model returned JSON that is not an object")
        return data


def user_text(text: str) -> list[types.Content]:
    return [types.Content(role="user", parts=[types.Part(text=text)])]
