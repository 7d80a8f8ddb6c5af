from typing import Sequence
import re

from Assessor.app.assessment.sections import (
    DESCRIPTION,
    GROSS_RISKS,
    JUSTIFICATION,
    MEASURES,
    NET_RISKS,
    OUTCOME,
    RECOMMENDATIONS,
    RISK_LEVEL,
    SUMMARY,
)
from Assessor.app.models import ReferenceArticle


NO_CONTEXT_PLACEHOLDER = "Kein zusätzlicher DSG-Kontext verfügbar."
APPLICABLE_LAWS = (
    "Swiss Federal Constitution (Bundesverfassung, BV, SR 101)",
    "Swiss Civil Code (Zivilgesetzbuch, ZGB, SR 210)",
    "Swiss Code of Obligations (Obligationenrecht, OR, SR 220)",
    "Swiss Data Protection Act (Datenschutzgesetz, DSG, SR 235.1)",
    "Swiss Penal Code (Strafgesetzbuch, StGB, SR 311.0)",
)


def build_prompt(user_text: str, context: Sequence[ReferenceArticle]) -> str:
    laws = "\n".join(f"- {law}" for law in APPLICABLE_LAWS)
    return (
        "You are an expert legal evaluator specializing in Swiss law. Analyse the "
        "following input text strictly from the perspective of the Swiss legal "
        "framework and prepare a data protection impact assessment (DSFA). "
        "Only the following laws apply:\n\n"
        f"{laws}\n\n"
        "IMPORTANT: Only provide assessments based on Swiss law. If the text relates "
        "to legal matters outside Switzerland, note that your assessment is limited "
        "to the Swiss legal perspective.\n\n"
        "CRITICAL: When referencing Swiss laws, you MUST cite them in the exact format "
        '"Art. [number] [law abbreviation]" or "Art. [number] Abs. [paragraph] '
        '[law abbreviation]".\n'
        'Examples: "Art. 5 DSG", "Art. 12 Abs. 1 ZGB", "Art. 28 OR", "Art. 13 BV"\n\n'
        "LANGUAGE REQUIREMENT: Write every part of the assessment exclusively in "
        "German. Keep the structural labels exactly as specified below, but make "
        "sure the content that follows each label is fully German.\n\n"
        "Kontext aus DSG (automatisch ausgewählte Passagen, bitte berücksichtigen):\n"
        f"{format_context(context)}\n\n"
        "Text to analyse:\n\n"
        f'"{user_text}"\n\n'
        f"{output_contract()}"
    )


def format_context(context: Sequence[ReferenceArticle]) -> str:
    if not context:
        return NO_CONTEXT_PLACEHOLDER
    blocks = []
    for article in context:
        heading = f" – {article.heading}" if article.heading else ""
        body = re.sub(r"\s+", " ", article.text).strip()
        blocks.append(f"{article.id}{heading}: {body}")
    return "\n\n".join(blocks)


def output_contract() -> str:
    return (
        "Please format your response as follows, using each label exactly once "
        "and in this order:\n"
        f"{SUMMARY}: [2-3 sentence summary with legal citations]\n"
        f"{RISK_LEVEL}: [LOW|MEDIUM|HIGH]\n"
        f'{JUSTIFICATION}: [one sentence with an exact citation, e.g. "Art. 5 DSG"]\n'
        f"{DESCRIPTION}: [description of the planned processing of personal data]\n"
        f"{GROSS_RISKS}: [potentially high gross risks for the persons concerned, "
        "one per line]\n"
        f"{MEASURES}:\n"
        "(1) [measure]: [reason with citation, e.g. Art. 8 DSG]\n"
        "(2) [measure]: [reason with citation]\n"
        f"{NET_RISKS}: [remaining net risks after the measures]\n"
        f"{OUTCOME}: [overall result of the assessment]\n"
        f"{RECOMMENDATIONS}:\n"
        '- [recommendation 1 with citation, e.g. "Art. 12 ZGB"]\n'
        "- [recommendation 2 with citation]\n"
        "- [recommendation 3 with citation]\n"
        "- [recommendation 4 with citation]\n"
        "- [recommendation 5 with citation]"
    )
