"""
Maps agent - place lookups grounded in Google Maps, biased to the user's location
"""
from google.genai import types

from orchestration.types import AgentKind
from orchestration.contracts import AuxInput
from .base import GeminiAgent


class MapsAgent(GeminiAgent):
    kind = AgentKind.MAPS
    requires = AuxInput.LOCATION
    system_instruction = (
        "You are a local places agent. Use Google Maps to find places relevant to the task. "
        "For each place give its name, address, rating if known and one line on why it fits."
    )

    def tools(self, request):
        return [types.Tool(google_maps=types.GoogleMaps())]

    def tool_config(self, request):
        # Without a location the model falls back to places named in the task
        if request.location is None:
            return None
        return types.ToolConfig(
            retrieval_config=types.RetrievalConfig(
                lat_lng=types.LatLng(
                    latitude=request.location.latitude,
                    longitude=request.location.longitude,
                )
            )
        )
