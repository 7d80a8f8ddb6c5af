from typing import Sequence

from Assessor.app.assessment.response_parser import parse_response
from Assessor.app.legal.citations import extract_legal_references
from Assessor.app.legal.registry import DEFAULT_LAW_REGISTRY, LawUrlRegistry
from Assessor.app.models import LegalReference, ParsedResponse, StructuredAssessment


def assemble_assessment(
    parsed: ParsedResponse,
    references: Sequence[LegalReference],
) -> StructuredAssessment:
    return StructuredAssessment(
        summary=parsed.summary,
        risk_level=parsed.risk_level,
        analysis=parsed.analysis,
        recommendations=list(parsed.recommendations),
        legal_references=list(references),
        justification=parsed.justification,
        description=parsed.description,
        gross_risks=parsed.gross_risks,
        measures=parsed.measures,
        net_risks=parsed.net_risks,
        outcome=parsed.outcome,
    )


def assess_reply(
    raw: str,
    registry: LawUrlRegistry = DEFAULT_LAW_REGISTRY,
) -> StructuredAssessment:
    """Parse one model reply and attach the citations found anywhere in it."""
    parsed = parse_response(raw)
    references = extract_legal_references(parsed.analysis, registry)
    return assemble_assessment(parsed, references)
