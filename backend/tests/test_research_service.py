from __future__ import annotations

import asyncio

from conftest import FakePaperStore, IndexEmbedder, paper
from tranquiloo.domain.research.service import (
    CONTEXT_FOOTER,
    CONTEXT_HEADER,
    ResearchService,
    extract_research_titles,
    format_context,
)
from tranquiloo.domain.research.ranker import rank_papers

ANXIOUS = "I'm anxious all the time"  # expands to 3 queries: original + 2 anxiety


def _service(store, **kw) -> ResearchService:
    return ResearchService(store, IndexEmbedder(), **kw)


class TestSearch:
    def test_merges_by_id_keeping_best_similarity(self):
        store = FakePaperStore({
            0: [paper("p1", "GAD and CBT", 0.30)],
            1: [paper("p1", "GAD and CBT", 0.70), paper("p2", "Worry diaries", 0.40)],
        })
        papers = asyncio.run(_service(store).search(ANXIOUS))
        by_id = {p.id: p for p in papers}
        assert set(by_id) == {"p1", "p2"}
        assert by_id["p1"].similarity == 0.70

    def test_every_expanded_query_is_searched(self):
        store = FakePaperStore()
        asyncio.run(_service(store, fetch_k=7, min_similarity=0.25).search(ANXIOUS))
        assert sorted(c["idx"] for c in store.calls) == [0, 1, 2]
        assert all(c["limit"] == 7 and c["min_similarity"] == 0.25 for c in store.calls)

    def test_failed_query_is_skipped(self):
        store = FakePaperStore({1: [paper("p2", "Worry diaries", 0.40)]}, fail_on=[0])
        papers = asyncio.run(_service(store).search(ANXIOUS))
        assert [p.id for p in papers] == ["p2"]

    def test_below_threshold_excluded(self):
        store = FakePaperStore({0: [paper("p1", "barely related", 0.10)]})
        assert asyncio.run(_service(store).search(ANXIOUS)) == []

    def test_topic_filter(self):
        store = FakePaperStore({0: [
            paper("p1", "CBT-I", 0.5, topic="Sleep"),
            paper("p2", "GAD", 0.5, topic="Anxiety Disorders"),
            paper("p3", "untagged", 0.9),
        ]})
        papers = asyncio.run(_service(store).search(ANXIOUS, topic="anxiety"))
        assert [p.id for p in papers] == ["p2"]

    def test_max_papers(self):
        store = FakePaperStore({0: [paper(f"p{i}", f"t{i}", 0.3 + i / 100) for i in range(8)]})
        assert len(asyncio.run(_service(store).search(ANXIOUS, max_papers=3))) == 3


class TestGetContext:
    def test_context_block(self):
        store = FakePaperStore({0: [
            paper("p1", "Internet CBT for GAD", 0.8, authors="Smith J", year=2021, topic="anxiety",
                  content="Randomized controlled trial. CITATION COUNT: 120", source_url="https://doi.org/x"),
        ]})
        ctx = asyncio.run(_service(store).get_context(ANXIOUS))
        assert ctx.startswith(CONTEXT_HEADER)
        assert ctx.endswith(CONTEXT_FOOTER)
        assert "[Research Paper 1]" in ctx
        assert "Title: Internet CBT for GAD" in ctx
        assert "Citation: Smith J (2021)" in ctx
        assert "Evidence Quality: 120 citations | anxiety" in ctx
        assert "Source: https://doi.org/x" in ctx

    def test_nothing_found_is_empty(self):
        assert asyncio.run(_service(FakePaperStore()).get_context(ANXIOUS)) == ""

    def test_all_queries_failing_is_empty(self):
        store = FakePaperStore(fail_on=[0, 1, 2])
        assert asyncio.run(_service(store).get_context(ANXIOUS)) == ""

    def test_timeout_is_empty(self):
        async def slow_embed(_text):
            await asyncio.sleep(1.0)
            return [0.0]

        svc = ResearchService(FakePaperStore({0: [paper("p1", "t", 0.9)]}), slow_embed, timeout_s=0.05)
        assert asyncio.run(svc.get_context(ANXIOUS)) == ""


class TestFormatting:
    def test_format_empty(self):
        assert format_context([]) == ""

    def test_papers_separated(self):
        ranked = rank_papers([paper("a", "One", 0.5), paper("b", "Two", 0.4)], "q")
        ctx = format_context(ranked)
        assert ctx.count("\n\n---\n\n") == 1
        assert "[Research Paper 2]" in ctx

    def test_missing_authors_falls_back_to_title(self):
        ctx = format_context(rank_papers([paper("a", "Only a title", 0.5)], "q"))
        assert "Citation: Only a title" in ctx

    def test_titles_round_trip(self):
        ranked = rank_papers([paper("a", "One", 0.5), paper("b", "Two", 0.4)], "q")
        assert extract_research_titles(format_context(ranked)) == ["One", "Two"]

    def test_titles_from_empty(self):
        assert extract_research_titles("") == []
