"""
Section labels shared by the prompt and the reply parser.

The prompt asks the model to answer with these labels in this order. Each
rule captures the text after its label up to the next label that may follow
it, so the order here and the order in the prompt must stay in sync.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Dict, Pattern, Tuple
import re


SUMMARY = "SUMMARY"
RISK_LEVEL = "RISK_LEVEL"
JUSTIFICATION = "JUSTIFICATION"
DESCRIPTION = "DESCRIPTION"
GROSS_RISKS = "GROSS_RISKS"
MEASURES = "MEASURES"
NET_RISKS = "NET_RISKS"
OUTCOME = "OUTCOME"
RECOMMENDATIONS = "RECOMMENDATIONS"

LABEL_ORDER = (
    SUMMARY,
    RISK_LEVEL,
    JUSTIFICATION,
    DESCRIPTION,
    GROSS_RISKS,
    MEASURES,
    NET_RISKS,
    OUTCOME,
    RECOMMENDATIONS,
)

FIELD_BY_LABEL = {
    SUMMARY: "summary",
    RISK_LEVEL: "risk_level",
    JUSTIFICATION: "justification",
    DESCRIPTION: "description",
    GROSS_RISKS: "gross_risks",
    MEASURES: "measures",
    NET_RISKS: "net_risks",
    OUTCOME: "outcome",
    RECOMMENDATIONS: "recommendations",
}


@dataclass(frozen=True)
class SectionRule:
    field: str
    label: str
    terminators: Tuple[str, ...]

    @cached_property
    def pattern(self) -> Pattern[str]:
        return _compile(self.label, self.terminators)

    def extract(self, raw: str) -> str:
        match = self.pattern.search(raw)
        if not match:
            return ""
        return match.group(1).strip()


def _compile(label: str, terminators: Tuple[str, ...]) -> Pattern[str]:
    if terminators:
        following = "|".join(re.escape(item) for item in terminators)
        lookahead = rf"(?=\s*[*#]*\s*\b(?:{following}):|\Z)"
    else:
        lookahead = r"(?=\Z)"
    return re.compile(
        rf"\b{re.escape(label)}:\**[ \t]*(.*?){lookahead}",
        flags=re.IGNORECASE | re.DOTALL,
    )


SECTION_RULES = tuple(
    SectionRule(
        field=FIELD_BY_LABEL[label],
        label=label,
        terminators=LABEL_ORDER[index + 1 :],
    )
    for index, label in enumerate(LABEL_ORDER)
)


def extract_sections(raw: str) -> Dict[str, str]:
    if not raw:
        return {rule.field: "" for rule in SECTION_RULES}
    return {rule.field: rule.extract(raw) for rule in SECTION_RULES}
