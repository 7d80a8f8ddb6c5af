from typing import List, Sequence
import re

from Assessor.app.models import ReferenceArticle


TOKEN_PATTERN = re.compile(r"[^\W\d_]+")


def retrieve_context(
    query: str,
    articles: Sequence[ReferenceArticle],
    limit: int = 5,
) -> List[ReferenceArticle]:
    if not articles or limit <= 0:
        return []
    query_tokens = set(_tokenize(query or ""))
    if not query_tokens:
        return []
    scored = []
    for article in articles:
        score = _overlap_score(query_tokens, set(_tokenize(article.text)))
        if score > 0:
            scored.append((score, article))
    # sort() is stable, so equal scores keep collection order
    scored.sort(key=lambda item: item[0], reverse=True)
    return [item[1] for item in scored[:limit]]


def _tokenize(text: str) -> List[str]:
    return TOKEN_PATTERN.findall(text.lower())


def _overlap_score(query_tokens: set, article_tokens: set) -> int:
    return sum(1 for token in query_tokens if token in article_tokens)
