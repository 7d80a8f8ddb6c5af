from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence
import re

from Assessor.app.assessment.markdown import clean_markdown
from Assessor.app.assessment.sections import extract_sections
from Assessor.app.models import (
    NO_RECOMMENDATIONS,
    NO_SUMMARY,
    RISK_UNKNOWN,
    ParsedResponse,
)


RISK_LEVEL_PATTERN = re.compile(
    r"\bRISK_LEVEL:\**\s*\**(LOW|MEDIUM|HIGH|UNKNOWN)\b",
    re.IGNORECASE,
)
LEGACY_RECOMMENDATIONS_PATTERN = re.compile(
    r"\bEMPFEHLUNGEN:\**\s*(.+?)(?=\n\s*\n|\Z)",
    re.IGNORECASE | re.DOTALL,
)
MARKER_PATTERN = re.compile(
    r"^\s*(?:\(\d+\)|\d+[.)](?!\d)|\([a-z]\)|[a-z]\)|[-•*–])\s*",
    re.IGNORECASE,
)
BARE_NUMBER_PATTERN = re.compile(r"^\(\d+\)$")
MIN_MEASURE_LENGTH = 10

Sections = Dict[str, str]
RecommendationStrategy = Callable[[str, Sections], List[str]]


def parse_response(raw: str) -> ParsedResponse:
    raw = raw if isinstance(raw, str) else ""
    sections = extract_sections(raw)
    summary = clean_markdown(sections["summary"]) or NO_SUMMARY
    recommendations = _first_non_empty(RECOMMENDATION_STRATEGIES, raw, sections)
    return ParsedResponse(
        summary=summary,
        risk_level=parse_risk_level(raw),
        analysis=raw,
        recommendations=recommendations or [NO_RECOMMENDATIONS],
        justification=_optional(sections["justification"]),
        description=_optional(sections["description"]),
        gross_risks=_optional(sections["gross_risks"]),
        measures=_optional(sections["measures"]),
        net_risks=_optional(sections["net_risks"]),
        outcome=_optional(sections["outcome"]),
    )


def parse_risk_level(raw: str) -> str:
    match = RISK_LEVEL_PATTERN.search(raw or "")
    if not match:
        return RISK_UNKNOWN
    return match.group(1).upper()


def strip_marker(line: str) -> str:
    return MARKER_PATTERN.sub("", line, count=1).strip()


def recommendations_from_section(raw: str, sections: Sections) -> List[str]:
    return _clean_lines(sections["recommendations"].splitlines())


def recommendations_from_measures(raw: str, sections: Sections) -> List[str]:
    items = []
    for line in clean_markdown(sections["measures"]).splitlines():
        if not MARKER_PATTERN.match(line):
            continue
        item = strip_marker(line)
        if ":" in item:
            item = item.split(":", 1)[1].strip()
        if _is_noise(item) or len(item) <= MIN_MEASURE_LENGTH:
            continue
        items.append(item)
    return items


def recommendations_from_legacy_label(raw: str, sections: Sections) -> List[str]:
    match = LEGACY_RECOMMENDATIONS_PATTERN.search(raw)
    if not match:
        return []
    return _clean_lines(match.group(1).splitlines())


RECOMMENDATION_STRATEGIES: Sequence[RecommendationStrategy] = (
    recommendations_from_section,
    recommendations_from_measures,
    recommendations_from_legacy_label,
)


def _first_non_empty(
    strategies: Sequence[RecommendationStrategy],
    raw: str,
    sections: Sections,
) -> List[str]:
    for strategy in strategies:
        items = strategy(raw, sections)
        if items:
            return items
    return []


def _clean_lines(lines: Sequence[str]) -> List[str]:
    items = []
    for line in lines:
        item = strip_marker(clean_markdown(line))
        if not item or _is_noise(item):
            continue
        items.append(item)
    return items


def _is_noise(item: str) -> bool:
    return bool(BARE_NUMBER_PATTERN.match(item))


def _optional(text: str) -> Optional[str]:
    cleaned = clean_markdown(text)
    return cleaned or None
