# backend/tranquiloo/domain/memory/repo.py
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from supabase import Client

from tranquiloo.schemas.memory import ConversationSummary
from tranquiloo.utils.time import parse_iso

__all__ = ["SummaryRepo"]


class SummaryRepo:
    """
    Append-only store for conversation summaries. Rows are never updated;
    the newest row per conversation is authoritative.
    """

    def __init__(self, client: Optional[Client] = None, table: Optional[str] = None):
        if table is None:
            from tranquiloo.core.config import get_settings

            table = get_settings().SUMMARIES_TABLE
        self._client = client
        self.table = table

    @property
    def client(self) -> Client:
        # resolved on first use; an unconfigured Supabase fails that call only
        if self._client is None:
            from tranquiloo.adapters.supabase_client import supa

            self._client = supa()
        return self._client

    # ---- mutations ----
    def insert_sync(self, summary: ConversationSummary) -> None:
        self.client.table(self.table).insert({
            "conversation_id": summary.conversation_id,
            "user_id": summary.user_id,
            "summary": summary.summary,
            "message_count": summary.message_count,
            "key_topics": summary.key_topics,
        }).execute()

    async def insert(self, summary: ConversationSummary) -> None:
        await asyncio.to_thread(self.insert_sync, summary)

    # ---- queries ----
    def latest_sync(self, conversation_id: str) -> Optional[ConversationSummary]:
        res = (
            self.client.table(self.table)
            .select("conversation_id, user_id, summary, key_topics, message_count, created_at")
            .eq("conversation_id", conversation_id)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        rows: List[Dict[str, Any]] = list(res.data or [])
        if not rows:
            return None
        row = rows[0]
        return ConversationSummary(
            conversation_id=str(row.get("conversation_id") or conversation_id),
            user_id=str(row.get("user_id") or ""),
            summary=str(row.get("summary") or ""),
            key_topics=list(row.get("key_topics") or []),
            message_count=int(row.get("message_count") or 0),
            created_at=parse_iso(row.get("created_at")),
        )

    async def latest(self, conversation_id: str) -> Optional[ConversationSummary]:
        return await asyncio.to_thread(self.latest_sync, conversation_id)
