"""
Adapter and utility behaviour that does not need a network or model download.
"""

from __future__ import annotations

import asyncio
import json
import logging

import pytest

from tranquiloo.adapters import embedder as embedder_mod
from tranquiloo.adapters import llm as llm_mod
from tranquiloo.adapters import qdrant_client as qdrant_mod
from tranquiloo.adapters import supabase_client as supa_mod
from tranquiloo.core.config import Settings
from tranquiloo.core.logging import JsonStreamHandler
from tranquiloo.domain.memory.repo import SummaryRepo
from tranquiloo.domain.research.store import QdrantPaperStore, paper_from_payload
from tranquiloo.utils.text import strip_code_fence, truncate, unique_preserve
from tranquiloo.utils.time import parse_iso


class TestSettings:
    def test_defaults(self):
        s = Settings(_env_file=None)
        assert s.OPENAI_MODEL == "gpt-4o-mini"
        assert s.RESEARCH_MIN_SIMILARITY == 0.20
        assert s.HISTORY_WINDOW == 5
        assert s.SUMMARY_EVERY == 10

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("RESEARCH_MAX_PAPERS", "5")
        assert Settings(_env_file=None).RESEARCH_MAX_PAPERS == 5


class TestClients:
    def test_qdrant_requires_url(self, monkeypatch):
        qdrant_mod.reset_qdrant()
        monkeypatch.setattr(qdrant_mod, "get_settings", lambda: Settings(_env_file=None, QDRANT_URL=None))
        with pytest.raises(RuntimeError):
            qdrant_mod.get_qdrant()
        assert qdrant_mod.qdrant_ping() is False

    def test_supabase_requires_url(self, monkeypatch):
        supa_mod.supa_reset()
        monkeypatch.setattr(supa_mod, "get_settings", lambda: Settings(_env_file=None, SUPABASE_URL=None))
        with pytest.raises(RuntimeError):
            supa_mod.supa()
        assert supa_mod.supa_ping() is False

    def test_repos_build_without_credentials(self, monkeypatch):
        supa_mod.supa_reset()
        qdrant_mod.reset_qdrant()
        bare = Settings(_env_file=None, QDRANT_URL=None, SUPABASE_URL=None)
        monkeypatch.setattr(supa_mod, "get_settings", lambda: bare)
        monkeypatch.setattr(qdrant_mod, "get_settings", lambda: bare)
        papers = QdrantPaperStore(collection="papers")
        summaries = SummaryRepo(table="t")
        with pytest.raises(RuntimeError):
            papers.client
        with pytest.raises(RuntimeError):
            summaries.client

    def test_optional_model_without_key(self, monkeypatch):
        monkeypatch.setattr(llm_mod, "get_settings", lambda: Settings(_env_file=None, OPENAI_API_KEY=None))
        calls = []
        assert llm_mod.optional_model(lambda: calls.append(1), "chat") is None
        assert calls == []

    def test_optional_model_build_failure(self, monkeypatch):
        monkeypatch.setattr(llm_mod, "get_settings", lambda: Settings(_env_file=None, OPENAI_API_KEY="sk-test"))

        def broken():
            raise ValueError("bad model name")

        assert llm_mod.optional_model(broken, "crisis") is None


class TestEmbedder:
    def test_empty_text(self):
        assert embedder_mod.embed("") is None
        with pytest.raises(RuntimeError):
            asyncio.run(embedder_mod.aembed(""))

    def test_cache_hit_skips_model(self, monkeypatch):
        embedder_mod.reset_embedder()

        def no_model():
            raise AssertionError("model should not load on a cache hit")

        monkeypatch.setattr(embedder_mod, "_get_model", no_model)
        embedder_mod._get_cache()[("cached query", True)] = [0.1, 0.2]
        assert asyncio.run(embedder_mod.aembed("cached query")) == [0.1, 0.2]
        embedder_mod._get_cache.cache_clear()

    def test_model_failure_is_none(self, monkeypatch):
        embedder_mod.reset_embedder()

        def broken():
            raise OSError("no weights")

        monkeypatch.setattr(embedder_mod, "_get_model", broken)
        assert embedder_mod.embed("hello") is None
        assert embedder_mod.embedder_ready() is False
        embedder_mod._get_cache.cache_clear()


class _Query:
    """Records the supabase-py query builder chain."""

    def __init__(self, data=None):
        self.ops = []
        self.data = data or []

    def __getattr__(self, name):
        def op(*args, **kwargs):
            self.ops.append((name, args, kwargs))
            return self
        return op

    def execute(self):
        return type("Res", (), {"data": self.data})()


class _Client:
    def __init__(self, query):
        self.query = query
        self.tables = []

    def table(self, name):
        self.tables.append(name)
        return self.query


class TestRepos:
    def test_latest_summary_query(self):
        q = _Query([{
            "conversation_id": "c1", "user_id": "u1", "summary": "s", "key_topics": ["sleep"],
            "message_count": 10, "created_at": "2024-05-01T10:00:00Z",
        }])
        repo = SummaryRepo(_Client(q), table="conversation_summaries")
        row = repo.latest_sync("c1")
        assert row.key_topics == ["sleep"]
        assert row.created_at.year == 2024
        names = [op[0] for op in q.ops]
        assert names == ["select", "eq", "order", "limit"]
        assert q.ops[2] == ("order", ("created_at",), {"desc": True})

    def test_latest_summary_missing(self):
        assert SummaryRepo(_Client(_Query([])), table="t").latest_sync("c1") is None

    def test_chat_turns_two_rows(self):
        from tranquiloo.domain.chat.repo import ChatTurnRepo

        q = _Query()
        ChatTurnRepo(_Client(q), table="chat_messages").append_sync("c1", "u1", "hi", "hello", incomplete=True)
        (name, (rows,), _kw) = q.ops[0]
        assert name == "insert"
        assert [r["sender"] for r in rows] == ["user", "ai"]
        assert rows[1]["incomplete"] is True


class TestPayload:
    def test_paper_from_payload(self):
        p = paper_from_payload(7, {"title": "CBT-I", "year": "2019", "text": "body", "url": "https://x"}, 0.42)
        assert p.id == "7"
        assert p.year == 2019
        assert p.content == "body"
        assert p.source_url == "https://x"
        assert p.similarity == 0.42

    def test_bad_year(self):
        assert paper_from_payload("a", {"year": "n/a"}, None).year is None


class TestUtils:
    def test_truncate(self):
        assert truncate("abcdef", 3) == "abc..."
        assert truncate("abc", 3) == "abc"
        assert truncate("", 3) == ""

    def test_strip_code_fence(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fence('{"a": 1}') == '{"a": 1}'

    def test_unique_preserve(self):
        assert unique_preserve(["b", "a", "b"]) == ["b", "a"]

    def test_parse_iso(self):
        assert parse_iso("2024-01-01T00:00:00Z").tzinfo is not None
        assert parse_iso("garbage") is None
        assert parse_iso(None) is None

    def test_json_log_line(self):
        record = logging.LogRecord("tranquiloo.test", logging.WARNING, __file__, 1, "hello %s", ("world",), None)
        line = json.loads(JsonStreamHandler().format(record))
        assert line["msg"] == "hello world"
        assert line["level"] == "WARNING"
