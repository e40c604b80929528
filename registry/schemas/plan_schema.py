"""
Planning response schema
The planner answers with exactly one of a plan or a clarification request.
"""
from .agent_catalog import AGENT_CATALOG

plan_step_schema = {
    "type": "object",
    "properties": {
        "step": {"type": "integer", "description": "1-based position of the step in the plan"},
        "agent": {
            "type": "string",
            "enum": [agent["name"] for agent in AGENT_CATALOG],
            "description": "Agent that performs the step",
        },
        "task": {"type": "string", "description": "Self-contained instruction for the agent"},
    },
    "required": ["step", "agent", "task"],
}

clarification_schema = {
    "type": "object",
    "properties": {
        "question": {"type": "string", "description": "Question to ask the user"},
        "options": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "key": {"type": "string", "description": "Short unique identifier"},
                    "value": {"type": "string", "description": "Option text shown to the user"},
                },
                "required": ["key", "value"],
            },
        },
    },
    "required": ["question", "options"],
}

PLAN_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "plan": {"type": "array", "items": plan_step_schema},
        "clarification": clarification_schema,
    },
}
