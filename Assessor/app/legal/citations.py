"""
Swiss statute citation extraction.

Finds citations such as "Art. 5 DSG" or "Art. 12 Abs. 1 Zivilgesetzbuch" and
links each one to the fedlex document of the cited law.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Pattern
import re

from Assessor.app.legal.registry import DEFAULT_LAW_REGISTRY, LawUrlRegistry, article_url
from Assessor.app.models import LegalReference


_ARTICLE = r"Art\.\s*(?P<article>\d+[a-z]?)\s*"
_PARAGRAPH = r"(?:Abs\.\s*(?P<paragraph>\d+))?\s*"


@dataclass(frozen=True)
class CitationGrammar:
    law: str
    pattern: Pattern[str]


def _grammar(law: str, *names: str) -> CitationGrammar:
    alternatives = "|".join(re.escape(name) for name in names)
    pattern = re.compile(
        rf"{_ARTICLE}{_PARAGRAPH}(?P<law>{alternatives})(?![a-zäöü])",
        flags=re.IGNORECASE,
    )
    return CitationGrammar(law=law, pattern=pattern)


# Scan order decides which duplicate survives.
CITATION_GRAMMARS = (
    _grammar("DSG", "DSG", "Datenschutzgesetz"),
    _grammar("ZGB", "ZGB", "Zivilgesetzbuch"),
    _grammar("OR", "OR", "Obligationenrecht"),
    _grammar("BV", "BV", "Bundesverfassung"),
    _grammar("StGB", "StGB", "Strafgesetzbuch"),
)


def extract_legal_references(
    text: str,
    registry: LawUrlRegistry = DEFAULT_LAW_REGISTRY,
) -> List[LegalReference]:
    if not isinstance(text, str) or not text:
        return []
    references = []
    for grammar in CITATION_GRAMMARS:
        for match in grammar.pattern.finditer(text):
            entry = registry.resolve(match.group("law"))
            if entry is None:
                continue
            article = match.group("article")
            references.append(
                LegalReference(
                    law=entry.abbreviation,
                    article=article,
                    paragraph=match.group("paragraph"),
                    text=match.group(0),
                    url=article_url(entry.url, article),
                )
            )
    return _dedupe_by_text(references)


def _dedupe_by_text(references: List[LegalReference]) -> List[LegalReference]:
    seen = set()
    unique = []
    for reference in references:
        if reference.text in seen:
            continue
        seen.add(reference.text)
        unique.append(reference)
    return unique
