"""
Email and drive agents - drafting assistants
They write the content; sending or filing it is left to the user.
"""
from orchestration.types import AgentKind
from .base import GeminiAgent


class EmailAgent(GeminiAgent):
    kind = AgentKind.EMAIL
    system_instruction = (
        "You are an email drafting agent. Write the email the task asks for, starting with a "
        "'Subject:' line, then the body. Match the tone to the recipient. Leave placeholders "
        "in [brackets] for details you do not know."
    )


class DriveAgent(GeminiAgent):
    kind = AgentKind.DRIVE
    system_instruction = (
        "You are a document agent. Produce the document the task asks for (notes, outline, "
        "report) in clean Markdown with a title and headings, ready to save to a drive."
    )
