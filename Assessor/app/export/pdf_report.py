"""
PDF rendering of a structured assessment.

Mirrors the layout of the downloadable report in the web client: header,
summary, the DSFA sections, a colored risk box, numbered recommendations,
legal references with links, the full analysis and a source excerpt.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional
from xml.sax.saxutils import escape
import io
import re

from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import (
    HRFlowable,
    ListFlowable,
    ListItem,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from Assessor.app.assessment.markdown import clean_markdown
from Assessor.app.assessment.response_parser import strip_marker
from Assessor.app.models import (
    NO_RECOMMENDATIONS,
    NO_SUMMARY,
    RISK_LEVELS,
    RISK_UNKNOWN,
    LegalReference,
    StructuredAssessment,
)


SOURCE_EXCERPT_CHARS = 1200
INK = colors.Color(26 / 255, 46 / 255, 58 / 255)
MUTED = colors.Color(81 / 255, 120 / 255, 145 / 255)
ACCENT = colors.Color(119 / 255, 177 / 255, 212 / 255)
NUMBERING = colors.Color(87 / 255, 185 / 255, 255 / 255)

RISK_STYLES = {
    "LOW": ("Niedrig", "Geringes Risiko basierend auf der Modellbewertung", (87, 185, 255), (232, 244, 253)),
    "MEDIUM": ("Mittel", "Moderates Risiko mit empfohlenen Folgeaktionen", (119, 177, 212), (208, 232, 245)),
    "HIGH": ("Hoch", "Hohes Risiko – sofortige Massnahmen empfohlen", (239, 68, 68), (254, 226, 226)),
    "UNKNOWN": ("Unbekannt", "Risikostufe konnte nicht bestimmt werden", (119, 177, 212), (232, 244, 253)),
}

DSFA_SECTIONS = (
    ("description", "Beschreibung der geplanten Bearbeitung"),
    ("gross_risks", "Potentiell hohe Bruttorisiken"),
    ("measures", "Geplante Massnahmen zur Senkung der Bruttorisiken"),
    ("net_risks", "Verbleibende Nettorisiken"),
    ("outcome", "Ergebnis"),
)


def render_assessment_pdf(
    assessment: StructuredAssessment,
    source_text: str = "",
    generated_at: Optional[datetime] = None,
) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=48,
        rightMargin=48,
        topMargin=60,
        bottomMargin=60,
        title="Swiss Legal Assessment",
    )
    styles = _build_styles()
    story: List[Any] = []
    timestamp = (generated_at or datetime.now()).strftime("%d.%m.%Y %H:%M")
    story.append(Paragraph("Swiss Legal Assessment", styles["title"]))
    story.append(Paragraph(f"Erstellt am {timestamp}", styles["muted"]))
    story.append(
        Paragraph(
            "Datenschutz-Folgenabschätzung basierend auf Schweizer Recht",
            styles["muted"],
        )
    )
    story.append(Spacer(1, 18))

    _add_section_title(story, styles, "Zusammenfassung")
    _add_paragraph(story, styles, assessment.summary)

    for field_name, title in DSFA_SECTIONS:
        value = getattr(assessment, field_name)
        if value:
            _add_section_title(story, styles, title)
            _add_multiline_block(story, styles, value)

    story.append(_risk_box(assessment.risk_level, styles))
    story.append(Spacer(1, 18))

    _add_section_title(story, styles, "Empfehlungen")
    _add_numbered_list(story, styles, assessment.recommendations)

    if assessment.legal_references:
        _add_section_title(story, styles, "Rechtliche Verweise")
        for reference in assessment.legal_references:
            _add_reference(story, styles, reference)

    _add_section_title(story, styles, "Vollständige Analyse")
    _add_multiline_block(story, styles, assessment.analysis)

    preview = (source_text or "").strip()
    if preview:
        if len(preview) > SOURCE_EXCERPT_CHARS:
            preview = f"{preview[:SOURCE_EXCERPT_CHARS]}…"
        _add_section_title(story, styles, "Ausgangstext (Auszug)")
        _add_multiline_block(story, styles, preview)

    doc.build(story)
    return buffer.getvalue()


def assessment_from_dict(data: Mapping[str, Any]) -> StructuredAssessment:
    """Rebuild an assessment from its JSON form.

    Missing keys take their defaults. List fields that are not JSON arrays are
    ignored.
    """
    risk_level = str(data.get("riskLevel") or RISK_UNKNOWN).upper()
    if risk_level not in RISK_LEVELS:
        risk_level = RISK_UNKNOWN
    recommendations = [
        str(item) for item in _list_field(data, "recommendations") if str(item).strip()
    ]
    references = []
    for item in _list_field(data, "legalReferences"):
        if not isinstance(item, Mapping) or not item.get("text"):
            continue
        references.append(
            LegalReference(
                law=str(item.get("law") or ""),
                text=str(item["text"]),
                url=str(item.get("url") or ""),
                article=_optional_str(item.get("article")),
                paragraph=_optional_str(item.get("paragraph")),
            )
        )
    return StructuredAssessment(
        summary=str(data.get("summary") or NO_SUMMARY),
        risk_level=risk_level,
        analysis=str(data.get("analysis") or ""),
        recommendations=recommendations or [NO_RECOMMENDATIONS],
        legal_references=references,
        justification=_optional_str(data.get("justification")),
        description=_optional_str(data.get("description")),
        gross_risks=_optional_str(data.get("grossRisks")),
        measures=_optional_str(data.get("measures")),
        net_risks=_optional_str(data.get("netRisks")),
        outcome=_optional_str(data.get("outcome")),
    )


def _build_styles() -> dict:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "ReportTitle",
            parent=base["Title"],
            fontName="Helvetica-Bold",
            fontSize=22,
            leading=26,
            textColor=INK,
            alignment=TA_LEFT,
        ),
        "muted": ParagraphStyle(
            "ReportMuted",
            parent=base["BodyText"],
            fontSize=12,
            leading=18,
            textColor=MUTED,
        ),
        "section": ParagraphStyle(
            "ReportSection",
            parent=base["Heading2"],
            fontName="Helvetica-Bold",
            fontSize=16,
            leading=20,
            textColor=INK,
            spaceBefore=12,
            spaceAfter=2,
        ),
        "body": ParagraphStyle(
            "ReportBody",
            parent=base["BodyText"],
            fontName="Helvetica",
            fontSize=12,
            leading=18,
            textColor=INK,
            spaceAfter=6,
        ),
        "link": ParagraphStyle(
            "ReportLink",
            parent=base["BodyText"],
            fontSize=10,
            leading=14,
            textColor=MUTED,
            leftIndent=10,
            spaceAfter=6,
        ),
        "risk_title": ParagraphStyle(
            "RiskTitle", parent=base["BodyText"], fontName="Helvetica-Bold", fontSize=14, leading=18
        ),
        "risk_label": ParagraphStyle(
            "RiskLabel", parent=base["BodyText"], fontName="Helvetica-Bold", fontSize=24, leading=28
        ),
    }


def _add_section_title(story: List[Any], styles: dict, title: str) -> None:
    story.append(Paragraph(escape(title), styles["section"]))
    story.append(
        HRFlowable(width=80, thickness=1.2, color=ACCENT, hAlign="LEFT", spaceAfter=8)
    )


def _add_paragraph(story: List[Any], styles: dict, text: str) -> None:
    if not text or not text.strip():
        return
    cleaned = clean_markdown(text.strip())
    story.append(Paragraph(_markup(cleaned), styles["body"]))


def _add_multiline_block(story: List[Any], styles: dict, text: str) -> None:
    for paragraph in _block_paragraphs(text):
        story.append(Paragraph(_markup(paragraph), styles["body"]))


def _block_paragraphs(text: str) -> List[str]:
    cleaned = clean_markdown(text or "")
    paragraphs = [strip_marker(part) for part in re.split(r"\n+", cleaned)]
    return [part for part in paragraphs if part]


def _add_numbered_list(story: List[Any], styles: dict, items: Iterable[str]) -> None:
    entries = []
    for item in items:
        cleaned = strip_marker(clean_markdown(item))
        if cleaned:
            entries.append(ListItem(Paragraph(_markup(cleaned), styles["body"])))
    if not entries:
        return
    story.append(
        ListFlowable(
            entries,
            bulletType="1",
            bulletFormat="%s.",
            bulletFontName="Helvetica-Bold",
            bulletColor=NUMBERING,
            leftIndent=30,
        )
    )


def _add_reference(story: List[Any], styles: dict, reference: LegalReference) -> None:
    label = f"{reference.text} – {reference.law}"
    story.append(Paragraph(f"<b>{escape(label)}</b>", styles["body"]))
    if reference.url:
        url = escape(reference.url, {'"': "&quot;"})
        story.append(Paragraph(f'<link href="{url}">{escape(reference.url)}</link>', styles["link"]))


def _risk_box(risk_level: str, styles: dict) -> Table:
    label, description, color, background = RISK_STYLES.get(
        risk_level, RISK_STYLES[RISK_UNKNOWN]
    )
    accent = colors.Color(*(value / 255 for value in color))
    fill = colors.Color(*(value / 255 for value in background))
    title_style = ParagraphStyle("RiskTitleColored", parent=styles["risk_title"], textColor=accent)
    label_style = ParagraphStyle("RiskLabelColored", parent=styles["risk_label"], textColor=accent)
    rows = [
        [Paragraph("Risikobewertung", title_style)],
        [Paragraph(escape(label), label_style)],
        [Paragraph(escape(description), styles["body"])],
    ]
    table = Table(rows, colWidths=[A4[0] - 96])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, -1), fill),
                ("LEFTPADDING", (0, 0), (-1, -1), 20),
                ("TOPPADDING", (0, 0), (-1, 0), 12),
                ("BOTTOMPADDING", (0, -1), (-1, -1), 12),
            ]
        )
    )
    return table


def _markup(text: str) -> str:
    return escape(text).replace("\n", "<br/>")


def _list_field(data: Mapping[str, Any], key: str) -> list:
    value = data.get(key)
    return value if isinstance(value, list) else []


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
