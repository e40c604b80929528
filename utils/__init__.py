"""
Shared utilities - logging and the Supabase connection
"""
from .logger import get_logger
from .supabase_client import (
    get_supabase_client,
    fetch_conversation_rows,
    upsert_conversation_row,
)

__all__ = [
    "get_logger",
    "get_supabase_client",
    "fetch_conversation_rows",
    "upsert_conversation_row",
]
