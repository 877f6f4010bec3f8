# backend/tranquiloo/domain/chat/repo.py
from __future__ import annotations

import asyncio
from typing import Optional

from supabase import Client

__all__ = ["ChatTurnRepo"]


class ChatTurnRepo:
    """Two-row append of a user message and the assistant reply."""

    def __init__(self, client: Optional[Client] = None, table: Optional[str] = None):
        if table is None:
            from tranquiloo.core.config import get_settings

            table = get_settings().MESSAGES_TABLE
        self._client = client
        self.table = table

    @property
    def client(self) -> Client:
        # resolved on first use; an unconfigured Supabase fails that call only
        if self._client is None:
            from tranquiloo.adapters.supabase_client import supa

            self._client = supa()
        return self._client

    def append_sync(
        self,
        conversation_id: str,
        user_id: str,
        user_message: str,
        reply: str,
        *,
        incomplete: bool = False,
    ) -> None:
        self.client.table(self.table).insert([
            {
                "session_id": conversation_id,
                "user_id": user_id,
                "content": user_message,
                "sender": "user",
            },
            {
                "session_id": conversation_id,
                "user_id": user_id,
                "content": reply,
                "sender": "ai",
                "incomplete": incomplete,
            },
        ]).execute()

    async def append(
        self,
        conversation_id: str,
        user_id: str,
        user_message: str,
        reply: str,
        *,
        incomplete: bool = False,
    ) -> None:
        await asyncio.to_thread(
            self.append_sync, conversation_id, user_id, user_message, reply, incomplete=incomplete
        )
