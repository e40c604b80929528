"""
Registry of agents and response schemas used by the planner
"""
from .schemas.agent_catalog import AGENT_CATALOG
from .schemas.plan_schema import PLAN_RESPONSE_SCHEMA

__all__ = ["AGENT_CATALOG", "PLAN_RESPONSE_SCHEMA"]
