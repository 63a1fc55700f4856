"""Lexical relevance ranking."""

from repoctx.ranking.keywords import STOP_WORDS, extract_keywords
from repoctx.ranking.ranker import FILENAME_MATCH_SCORE, RelevanceRanker, score_file

__all__ = [
    "RelevanceRanker",
    "extract_keywords",
    "score_file",
    "STOP_WORDS",
    "FILENAME_MATCH_SCORE",
]
