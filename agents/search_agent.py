"""
Search agent - answers from Google Search grounding
"""
from google.genai import types

from orchestration.types import AgentKind
from .base import GeminiAgent


class SearchAgent(GeminiAgent):
    kind = AgentKind.SEARCH
    system_instruction = (
        "You are a web research agent. Use Google Search to answer the task with current, "
        "verifiable facts. Be concise and concrete: names, numbers, dates. Do not invent sources."
    )

    def tools(self, request):
        return [types.Tool(google_search=types.GoogleSearch())]
