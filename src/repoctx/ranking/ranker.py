"""Lexical relevance ranking of cataloged files.

A deliberately cheap heuristic: no index, no embeddings, just keyword
matches in file names and contents over a bounded number of candidates.

Scoring per keyword:
- +10 if the file name contains it (case-insensitive, once per keyword)
- +N where N is the number of occurrences in the content (case-insensitive)
"""

import logging
from itertools import islice
from pathlib import Path

from repoctx.catalog.file_catalog import FileCatalog
from repoctx.config import RankingConfig
from repoctx.errors import RepositoryValidationError
from repoctx.models.catalog import CatalogEntry, ScoredFile
from repoctx.ranking.keywords import extract_keywords
from repoctx.utils.deadline import Deadline

logger = logging.getLogger(__name__)

FILENAME_MATCH_SCORE = 10


def score_file(name: str, content: str, keywords: list[str]) -> int:
    """Score one file against lower-cased keywords."""
    lowered_name = name.lower()
    lowered_content = content.lower()
    score = 0
    for keyword in keywords:
        if keyword in lowered_name:
            score += FILENAME_MATCH_SCORE
        score += lowered_content.count(keyword)
    return score


class RelevanceRanker:
    """Selects the files most relevant to a query.

    Usage:
        ranker = RelevanceRanker(FileCatalog(config.catalog), config.ranking)
        top = ranker.find_relevant("database migration", repo_path)
    """

    def __init__(self, catalog: FileCatalog, config: RankingConfig | None = None) -> None:
        self.catalog = catalog
        self.config = config or RankingConfig()

    def find_relevant(
        self,
        query: str,
        root: Path,
        max_candidates: int | None = None,
        top_k: int | None = None,
        deadline: Deadline | None = None,
    ) -> list[ScoredFile]:
        """Rank files under ``root`` for ``query``.

        Args:
            query: Free-text query
            root: Mirror root
            max_candidates: Candidate scan cap (config default if None)
            top_k: Maximum results (config default if None)
            deadline: Stop scanning once this expires

        Returns:
            Files with a positive score, highest first; ties keep catalog order

        Raises:
            MirrorNotFoundError: If root does not exist
            RepositoryValidationError: If max_candidates or top_k is below 1
        """
        if max_candidates is None:
            max_candidates = self.config.max_candidates
        if top_k is None:
            top_k = self.config.top_k
        if max_candidates < 1 or top_k < 1:
            raise RepositoryValidationError(
                f"max_candidates and top_k must be >= 1 (got {max_candidates}, {top_k})"
            )

        keywords = extract_keywords(query)
        if not keywords:
            logger.info("No keywords in query %r, nothing to rank", query)
            return []

        candidates = islice(self.catalog.enumerate(root), max_candidates)
        scored: list[ScoredFile] = []
        scanned = 0

        for entry in candidates:
            if deadline is not None and deadline.expired:
                logger.warning("Deadline reached after scanning %d files, ranking partial set", scanned)
                break
            scanned += 1
            result = self._score_entry(entry, keywords)
            if result is not None:
                scored.append(result)

        # sorted() is stable, so equal scores keep enumeration order
        ranked = sorted(scored, key=lambda f: f.score, reverse=True)[:top_k]
        logger.info(
            "Found %d relevant files for query: %s (scanned %d, keywords %s)",
            len(ranked),
            query,
            scanned,
            keywords,
        )
        return ranked

    def find_relevant_paths(self, query: str, root: Path, **kwargs: object) -> list[str]:
        """Same as find_relevant, returning paths relative to the root."""
        return [f.relative_path for f in self.find_relevant(query, root, **kwargs)]  # type: ignore[arg-type]

    def _score_entry(self, entry: CatalogEntry, keywords: list[str]) -> ScoredFile | None:
        content = self.catalog.read_text(entry.path)
        if content is None:
            return None
        score = score_file(entry.name, content, keywords)
        if score <= 0:
            return None
        return ScoredFile(path=entry.path, relative_path=entry.relative_path, score=score)
