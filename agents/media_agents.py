"""
Vision and video agents - analyse media attached to the conversation
The media is passed inline for this call only and never persisted.
"""
from google.genai import types

from orchestration.types import AgentKind
from orchestration.contracts import AgentRequest, AuxInput
from .base import GeminiAgent


class _MediaAgent(GeminiAgent):

    def build_contents(self, request: AgentRequest) -> list[types.Content]:
        media = request.media
        return [
            types.Content(
                role="user",
                parts=[
                    types.Part.from_bytes(data=media.data, mime_type=media.mime_type),
                    types.Part(text=request.task),
                ],
            )
        ]


class VisionAgent(_MediaAgent):
    kind = AgentKind.VISION
    requires = AuxInput.IMAGE
    system_instruction = (
        "You are an image analysis agent. Describe what the task asks about the attached image "
        "precisely, and say so plainly when something cannot be determined from it."
    )


class VideoAgent(_MediaAgent):
    kind = AgentKind.VIDEO
    requires = AuxInput.VIDEO
    system_instruction = (
        "You are a video analysis agent. Answer the task about the attached video, "
        "referring to moments by timestamp where it helps."
    )
