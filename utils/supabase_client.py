"""
Supabase client for database access
Conversations are stored one row per conversation, keyed by (namespace, id),
with the serialized record in the JSON 'payload' column.
"""
from datetime import datetime, timezone

from supabase import create_client, Client
from config import settings
from utils.logger import get_logger

logger = get_logger(__name__)

_client: Client | None = None


def get_supabase_client() -> Client:
    """Get or create Supabase client singleton"""
    global _client
    if _client is None:
        if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
            raise ValueError("Supabase URL and Key must be configured")
        _client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    return _client


def fetch_conversation_rows(client: Client, table: str, namespace: str) -> list[dict]:
    """Get every stored conversation payload in a namespace, oldest first"""
    response = (
        client.table(table)
        .select("id, payload, created_at")
        .eq("namespace", namespace)
        .order("created_at")
        .execute()
    )
    rows = response.data or []
    logger.info(f"fetch_conversation_rows for {namespace}: found {len(rows)} conversations")
    return [row["payload"] for row in rows if row.get("payload")]


def upsert_conversation_row(client: Client, table: str, namespace: str, payload: dict) -> None:
    """Insert or replace a single conversation payload"""
    client.table(table).upsert(
        {
            "namespace": namespace,
            "id": payload["id"],
            "payload": payload,
            "created_at": payload.get("created_at"),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        },
        on_conflict="namespace,id",
    ).execute()
    logger.debug(f"upsert_conversation_row {namespace}/{payload['id']}: status={payload.get('status')}")
