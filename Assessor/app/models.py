from dataclasses import dataclass, field
from typing import List, Optional

RISK_LOW = "LOW"
RISK_MEDIUM = "MEDIUM"
RISK_HIGH = "HIGH"
RISK_UNKNOWN = "UNKNOWN"
RISK_LEVELS = (RISK_LOW, RISK_MEDIUM, RISK_HIGH, RISK_UNKNOWN)

NO_SUMMARY = "No summary provided."
NO_RECOMMENDATIONS = "No recommendations provided."


@dataclass(frozen=True)
class LegalReference:
    law: str
    text: str
    url: str
    article: Optional[str] = None
    paragraph: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "law": self.law,
            "article": self.article,
            "paragraph": self.paragraph,
            "text": self.text,
            "url": self.url,
        }


@dataclass(frozen=True)
class ReferenceArticle:
    id: str
    text: str
    heading: Optional[str] = None


@dataclass(frozen=True)
class ParsedResponse:
    summary: str
    risk_level: str
    analysis: str
    recommendations: List[str]
    justification: Optional[str] = None
    description: Optional[str] = None
    gross_risks: Optional[str] = None
    measures: Optional[str] = None
    net_risks: Optional[str] = None
    outcome: Optional[str] = None


@dataclass(frozen=True)
class StructuredAssessment:
    summary: str
    risk_level: str
    analysis: str
    recommendations: List[str]
    legal_references: List[LegalReference] = field(default_factory=list)
    justification: Optional[str] = None
    description: Optional[str] = None
    gross_risks: Optional[str] = None
    measures: Optional[str] = None
    net_risks: Optional[str] = None
    outcome: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "riskLevel": self.risk_level,
            "analysis": self.analysis,
            "recommendations": list(self.recommendations),
            "legalReferences": [ref.to_dict() for ref in self.legal_references],
            "justification": self.justification,
            "description": self.description,
            "grossRisks": self.gross_risks,
            "measures": self.measures,
            "netRisks": self.net_risks,
            "outcome": self.outcome,
        }


@dataclass(frozen=True)
class AssessmentRun:
    assessment: StructuredAssessment
    model: str
    token_usage: Optional[dict[str, int]] = None
