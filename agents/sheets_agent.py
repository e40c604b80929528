"""
Sheets agent - turns the previous step's output into a table

The agent sees only the result of the step immediately before it. The full
table becomes the conversation's artifact; the streamed text is a short
summary of it.
"""
from orchestration.types import AgentKind, GeneratedArtifact
from orchestration.contracts import AgentRequest, AuxInput, ChunkCallback, StepOutput
from services import GeminiService, user_text
from utils import get_logger

logger = get_logger(__name__)

SHEETS_SYSTEM_PROMPT = """You are a spreadsheet agent. Build the table the task asks for from the provided data.

Respond with a JSON object only:
{"summary": "one or two sentences describing the table",
 "columns": ["Column A", "Column B"],
 "rows": [["a1", "b1"], ["a2", "b2"]]}

Every row must have exactly one cell per column. Include every record found in the data; never truncate."""


def artifact_name(task: str) -> str:
    return f"{task[:30]}..."


def _cell(value) -> str:
    return "" if value is None else str(value)


def build_artifact(task: str, data: dict) -> GeneratedArtifact:
    columns = [_cell(c) for c in data.get("columns") or []]
    raw_rows = data.get("rows") or []
    if not isinstance(raw_rows, list):
        raise ValueError("Sheet rows must be a list")

    rows = []
    for index, raw in enumerate(raw_rows):
        if not isinstance(raw, list):
            raise ValueError(f"Sheet row {index + 1} is not a list")
        row = [_cell(value) for value in raw]
        if columns and len(row) != len(columns):
            # Short rows are padded, long rows keep their extra cells
            row = row + [""] * (len(columns) - len(row))
        rows.append(row)
    return GeneratedArtifact(name=artifact_name(task), columns=columns, rows=rows)


class SheetsAgent:
    kind = AgentKind.SHEETS
    requires = AuxInput.PREVIOUS_RESULT

    def __init__(self, service: GeminiService):
        self.service = service

    def run(self, request: AgentRequest, on_chunk: ChunkCallback) -> StepOutput:
        previous = request.previous_result or ""
        logger.info(f"SheetsAgent building table from {len(previous)} chars of input")

        prompt = f"## TASK\n{request.task}\n\n## DATA\n{previous or 'No data from the previous step.'}"
        data = self.service.generate_json(user_text(prompt), system_instruction=SHEETS_SYSTEM_PROMPT)
        artifact = build_artifact(request.task, data)

        summary = str(data.get("summary") or "").strip()
        if summary:
            on_chunk(f"{summary}\n\n")
        on_chunk(f"Created '{artifact.name}' with {artifact.row_count} rows and {len(artifact.columns)} columns.")
        return StepOutput(artifact=artifact)
