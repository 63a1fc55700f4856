"""Keyword extraction from free-text queries."""

STOP_WORDS = frozenset(
    {
        "the",
        "is",
        "at",
        "which",
        "on",
        "how",
        "what",
        "where",
        "when",
        "why",
        "and",
        "or",
        "but",
        "in",
        "with",
        "for",
    }
)

TRAILING_PUNCTUATION = "?.,!;:"

MIN_TOKEN_LENGTH = 3


def extract_keywords(query: str) -> list[str]:
    """Extract lower-cased search keywords from a query.

    Tokens are split on whitespace; tokens shorter than three characters and
    stop words are dropped, then trailing punctuation is stripped. Duplicates
    are removed, keeping first-occurrence order.

    >>> extract_keywords("How is the database migration handled?")
    ['database', 'migration', 'handled']
    """
    keywords: list[str] = []
    seen: set[str] = set()
    for token in query.split():
        if len(token) < MIN_TOKEN_LENGTH or token.lower() in STOP_WORDS:
            continue
        keyword = token.rstrip(TRAILING_PUNCTUATION).lower()
        if keyword and keyword not in seen:
            seen.add(keyword)
            keywords.append(keyword)
    return keywords
