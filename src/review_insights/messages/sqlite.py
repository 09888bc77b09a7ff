"""Read-only access to a SQLite export of the chat store."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from review_insights.exceptions import MessageStoreReadError
from review_insights.messages.base import BaseMessageStore
from review_insights.messages.models import Conversation, Message, normalize_message_type

logger = logging.getLogger(__name__)

# Expected tables:
#   conversation(id TEXT, is_direct INTEGER)
#   conversation_participant(conversation_id TEXT, user_id TEXT)
#   message(id TEXT, conversation_id TEXT, sender_id TEXT, type TEXT,
#           content TEXT, created_at REAL, is_deleted INTEGER)
# created_at is Unix seconds (UTC).


class SQLiteMessageStore(BaseMessageStore):
    """Read-only connection to an exported chat database."""

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        """Open a read-only connection."""
        if not self.db_path.exists():
            raise MessageStoreReadError(f"Chat database not found at {self.db_path}.")
        try:
            conn = sqlite3.connect(f"file:{self.db_path}?mode=ro", uri=True)
            conn.row_factory = sqlite3.Row
            return conn
        except (sqlite3.OperationalError, sqlite3.DatabaseError) as e:
            raise MessageStoreReadError(f"Failed to open chat database: {e}") from e

    def _query(self, sql: str, params: tuple) -> list[sqlite3.Row]:
        conn = self._connect()
        try:
            return conn.execute(sql, params).fetchall()
        except (sqlite3.OperationalError, sqlite3.DatabaseError) as e:
            raise MessageStoreReadError(f"Chat database query failed: {e}") from e
        finally:
            conn.close()

    def _participants(self, conversation_id: str) -> list[str]:
        rows = self._query(
            "SELECT user_id FROM conversation_participant WHERE conversation_id = ?",
            (conversation_id,),
        )
        return [row["user_id"] for row in rows]

    def _conversations_for_sync(self, user_id: str) -> list[Conversation]:
        rows = self._query(
            """
            SELECT c.id, c.is_direct
            FROM conversation c
            JOIN conversation_participant p ON p.conversation_id = c.id
            WHERE p.user_id = ?
            ORDER BY c.id
            """,
            (user_id,),
        )
        return [
            Conversation(
                id=row["id"],
                participant_ids=self._participants(row["id"]),
                is_direct=bool(row["is_direct"]),
            )
            for row in rows
        ]

    def _direct_conversation_sync(self, user_a: str, user_b: str) -> Conversation | None:
        for conversation in self._conversations_for_sync(user_a):
            if conversation.is_direct and conversation.includes(user_b):
                return conversation
        return None

    def _messages_sync(
        self,
        conversation_id: str,
        since: datetime,
        limit: int,
        message_type: str | None,
    ) -> list[Message]:
        sql = """
            SELECT id, conversation_id, sender_id, type, content, created_at, is_deleted
            FROM message
            WHERE conversation_id = ? AND created_at >= ? AND COALESCE(is_deleted, 0) = 0
        """
        params: list = [conversation_id, since.timestamp()]
        if message_type is not None:
            sql += " AND type = ?"
            params.append(message_type)
        sql += " ORDER BY created_at ASC, id ASC LIMIT ?"
        params.append(limit)

        messages = []
        for row in self._query(sql, tuple(params)):
            messages.append(Message(
                id=row["id"],
                conversation_id=row["conversation_id"],
                sender_id=row["sender_id"],
                type=normalize_message_type(row["type"]),
                content=row["content"] or "",
                created_at=datetime.fromtimestamp(row["created_at"], tz=timezone.utc),
                is_deleted=bool(row["is_deleted"]),
            ))
        logger.debug(f"Conversation {conversation_id}: {len(messages)} messages since {since}")
        return messages

    async def get_direct_conversation(self, user_a: str, user_b: str) -> Conversation | None:
        return await asyncio.to_thread(self._direct_conversation_sync, user_a, user_b)

    async def list_conversations_for(self, user_id: str) -> list[Conversation]:
        return await asyncio.to_thread(self._conversations_for_sync, user_id)

    async def fetch_conversation_messages(
        self,
        conversation_id: str,
        since: datetime,
        limit: int = 100,
        message_type: str | None = None,
    ) -> list[Message]:
        return await asyncio.to_thread(
            self._messages_sync, conversation_id, since, limit, message_type
        )
