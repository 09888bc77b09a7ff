"""Tests for the SQLite message store."""

import asyncio
import sqlite3
from datetime import timedelta
from pathlib import Path

import pytest

from review_insights.exceptions import MessageStoreReadError
from review_insights.messages.sqlite import SQLiteMessageStore


@pytest.fixture
def chat_db(tmp_path, base_time):
    """Create a minimal chat export for testing."""
    db_path = tmp_path / "chat.db"
    conn = sqlite3.connect(str(db_path))
    conn.execute("CREATE TABLE conversation (id TEXT PRIMARY KEY, is_direct INTEGER)")
    conn.execute("CREATE TABLE conversation_participant (conversation_id TEXT, user_id TEXT)")
    conn.execute("""
        CREATE TABLE message (
            id TEXT PRIMARY KEY,
            conversation_id TEXT,
            sender_id TEXT,
            type TEXT,
            content TEXT,
            created_at REAL,
            is_deleted INTEGER DEFAULT 0
        )
    """)

    ts = base_time.timestamp()
    conn.execute("INSERT INTO conversation VALUES ('direct-1', 1)")
    conn.execute("INSERT INTO conversation VALUES ('group-1', 0)")
    conn.executemany(
        "INSERT INTO conversation_participant VALUES (?, ?)",
        [
            ("direct-1", "owner-1"), ("direct-1", "walker-1"),
            ("group-1", "owner-1"), ("group-1", "walker-1"), ("group-1", "walker-2"),
        ],
    )
    conn.executemany(
        "INSERT INTO message VALUES (?, ?, ?, ?, ?, ?, ?)",
        [
            ("m1", "direct-1", "owner-1", "text", "Can you walk Rex?", ts, 0),
            ("m2", "direct-1", "walker-1", "image", "https://img/rex.jpg", ts + 60, 0),
            ("m3", "direct-1", "walker-1", "text", "deleted", ts + 120, 1),
            ("m4", "direct-1", "walker-1", "sticker", "sticker-42", ts + 180, 0),
        ],
    )
    conn.commit()
    conn.close()
    return db_path


def test_direct_conversation(chat_db):
    store = SQLiteMessageStore(chat_db)
    conversation = asyncio.run(store.get_direct_conversation("owner-1", "walker-1"))
    assert conversation.id == "direct-1"
    assert set(conversation.participant_ids) == {"owner-1", "walker-1"}


def test_no_direct_conversation(chat_db):
    store = SQLiteMessageStore(chat_db)
    assert asyncio.run(store.get_direct_conversation("owner-1", "walker-2")) is None


def test_list_conversations(chat_db):
    store = SQLiteMessageStore(chat_db)
    conversations = asyncio.run(store.list_conversations_for("owner-1"))
    assert [c.id for c in conversations] == ["direct-1", "group-1"]
    assert conversations[1].is_direct is False


def test_fetch_messages_excludes_deleted(chat_db, base_time):
    store = SQLiteMessageStore(chat_db)
    messages = asyncio.run(
        store.fetch_conversation_messages("direct-1", base_time - timedelta(minutes=1))
    )
    assert [m.id for m in messages] == ["m1", "m2", "m4"]
    assert messages[0].created_at == base_time
    assert messages[2].type == "other"


def test_fetch_messages_by_type(chat_db, base_time):
    store = SQLiteMessageStore(chat_db)
    messages = asyncio.run(
        store.fetch_conversation_messages("direct-1", base_time, message_type="image")
    )
    assert [m.content for m in messages] == ["https://img/rex.jpg"]


def test_missing_db():
    store = SQLiteMessageStore(Path("/nonexistent/chat.db"))
    with pytest.raises(MessageStoreReadError, match="not found"):
        asyncio.run(store.list_conversations_for("owner-1"))
