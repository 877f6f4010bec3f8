from .expansion import expand_query
from .ranker import rank_papers
from .service import ResearchService, extract_research_titles, format_context

__all__ = ["expand_query", "rank_papers", "ResearchService", "extract_research_titles", "format_context"]
