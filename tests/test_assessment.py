import unittest
from unittest.mock import patch

from Assessor.app.assessment.assembler import assemble_assessment, assess_reply
from Assessor.app.assessment.engine import run_assessment, select_context
from Assessor.app.assessment.markdown import clean_markdown
from Assessor.app.assessment.prompt import (
    NO_CONTEXT_PLACEHOLDER,
    build_prompt,
    output_contract,
)
from Assessor.app.assessment.response_parser import parse_response, strip_marker
from Assessor.app.assessment.sections import LABEL_ORDER, SECTION_RULES, extract_sections
from Assessor.app.config import AppConfig
from Assessor.app.models import (
    NO_RECOMMENDATIONS,
    NO_SUMMARY,
    LegalReference,
    ReferenceArticle,
)


FULL_REPLY = """**SUMMARY:** Die Kundendatenbank enthält besonders schützenswerte Personendaten (Art. 5 DSG).
**RISK_LEVEL:** HIGH
JUSTIFICATION: Ohne Verschlüsselung ist Art. 8 DSG verletzt.
DESCRIPTION: Speicherung von Gesundheitsdaten in einer Cloud-Datenbank.
GROSS_RISKS:
- Unbefugter Zugriff auf Gesundheitsdaten
MEASURES:
(1) Verschlüsselung der Daten: weil die Daten sensibel sind (Art. 8 DSG)
(2) Zugriffskonzept: Rollen nach Art. 8 Abs. 2 DSG festlegen
NET_RISKS: Geringes Restrisiko.
OUTCOME: Bearbeitung mit Massnahmen vertretbar.
RECOMMENDATIONS:
1. Verschlüsselung at rest einführen (Art. 8 DSG)
2. Datenschutzerklärung nach Art. 19 DSG ergänzen
3. Verträge gemäss Art. 9 DSG mit dem Cloud-Anbieter abschliessen
"""


class TestSections(unittest.TestCase):
    def test_rules_follow_label_order(self):
        self.assertEqual(tuple(rule.label for rule in SECTION_RULES), LABEL_ORDER)
        for index, rule in enumerate(SECTION_RULES):
            self.assertEqual(rule.terminators, LABEL_ORDER[index + 1 :])

    def test_prompt_contract_uses_labels_in_order(self):
        contract = output_contract()
        positions = [contract.index(f"{label}:") for label in LABEL_ORDER]
        self.assertEqual(positions, sorted(positions))

    def test_extract_sections(self):
        sections = extract_sections(FULL_REPLY)
        self.assertEqual(sections["net_risks"], "Geringes Restrisiko.")
        self.assertEqual(sections["outcome"], "Bearbeitung mit Massnahmen vertretbar.")
        self.assertTrue(sections["measures"].startswith("(1) Verschlüsselung"))
        self.assertEqual(extract_sections("")["summary"], "")


class TestResponseParser(unittest.TestCase):
    def test_basic_reply(self):
        parsed = parse_response(
            "SUMMARY: Hello. RISK_LEVEL: HIGH RECOMMENDATIONS:\n- Do X (Art. 5 DSG)\n- Do Y"
        )
        self.assertEqual(parsed.summary, "Hello.")
        self.assertEqual(parsed.risk_level, "HIGH")
        self.assertEqual(parsed.recommendations, ["Do X (Art. 5 DSG)", "Do Y"])

    def test_full_reply(self):
        parsed = parse_response(FULL_REPLY)
        self.assertEqual(
            parsed.summary,
            "Die Kundendatenbank enthält besonders schützenswerte Personendaten (Art. 5 DSG).",
        )
        self.assertEqual(parsed.risk_level, "HIGH")
        self.assertEqual(parsed.justification, "Ohne Verschlüsselung ist Art. 8 DSG verletzt.")
        self.assertEqual(
            parsed.description,
            "Speicherung von Gesundheitsdaten in einer Cloud-Datenbank.",
        )
        self.assertEqual(parsed.gross_risks, "- Unbefugter Zugriff auf Gesundheitsdaten")
        self.assertEqual(parsed.net_risks, "Geringes Restrisiko.")
        self.assertEqual(parsed.outcome, "Bearbeitung mit Massnahmen vertretbar.")
        self.assertEqual(
            parsed.recommendations,
            [
                "Verschlüsselung at rest einführen (Art. 8 DSG)",
                "Datenschutzerklärung nach Art. 19 DSG ergänzen",
                "Verträge gemäss Art. 9 DSG mit dem Cloud-Anbieter abschliessen",
            ],
        )
        self.assertEqual(parsed.analysis, FULL_REPLY)

    def test_missing_or_unknown_risk_level(self):
        self.assertEqual(parse_response("SUMMARY: Nichts.").risk_level, "UNKNOWN")
        self.assertEqual(parse_response("RISK_LEVEL: SEVERE").risk_level, "UNKNOWN")
        self.assertEqual(parse_response("risk_level: **medium**").risk_level, "MEDIUM")

    def test_recommendations_fall_back_to_measures(self):
        parsed = parse_response(
            "SUMMARY: Test.\n"
            "RISK_LEVEL: LOW\n"
            "MEASURES:\n"
            "(1) Verschlüsselung der Daten: weil sensibel (Art. 8 DSG)\n"
            "(2) Kurz: ok\n"
            "Ohne Marker: wird ignoriert und ist lang genug\n"
            "NET_RISKS: gering"
        )
        self.assertEqual(parsed.recommendations, ["weil sensibel (Art. 8 DSG)"])
        self.assertEqual(parsed.net_risks, "gering")

    def test_recommendations_fall_back_to_legacy_label(self):
        parsed = parse_response(
            "SUMMARY: Kurz.\n"
            "EMPFEHLUNGEN:\n"
            "- Datenschutzerklärung anpassen\n"
            "- Zugriff beschränken\n"
            "\n"
            "Weitere Hinweise folgen."
        )
        self.assertEqual(
            parsed.recommendations,
            ["Datenschutzerklärung anpassen", "Zugriff beschränken"],
        )

    def test_bare_numbers_are_noise(self):
        parsed = parse_response("RECOMMENDATIONS:\n(3)\n- Protokollierung einführen")
        self.assertEqual(parsed.recommendations, ["Protokollierung einführen"])

    def test_defaults_for_empty_reply(self):
        parsed = parse_response("")
        self.assertEqual(parsed.summary, NO_SUMMARY)
        self.assertEqual(parsed.risk_level, "UNKNOWN")
        self.assertEqual(parsed.recommendations, [NO_RECOMMENDATIONS])
        self.assertIsNone(parsed.description)
        self.assertIsNone(parsed.measures)
        self.assertEqual(parse_response(None).analysis, "")

    def test_markdown_is_removed_from_fields(self):
        parsed = parse_response(
            "SUMMARY: **Wichtig**: Die `Daten` sind\n\n\n\nbetroffen.\nRISK_LEVEL: MEDIUM"
        )
        self.assertEqual(parsed.summary, "Wichtig: Die Daten sind\n\nbetroffen.")

    def test_strip_marker(self):
        self.assertEqual(strip_marker("1. Erster Punkt"), "Erster Punkt")
        self.assertEqual(strip_marker("(b) Zweiter Punkt"), "Zweiter Punkt")
        self.assertEqual(strip_marker("• Dritter Punkt"), "Dritter Punkt")
        self.assertEqual(strip_marker("Art. 5 DSG beachten"), "Art. 5 DSG beachten")


class TestMarkdown(unittest.TestCase):
    def test_clean_markdown(self):
        text = "# Titel\n**fett** und *kursiv* und _betont_\n```\ncode\n```\nEnde"
        self.assertEqual(clean_markdown(text), "Titel\nfett und kursiv und betont\n\nEnde")

    def test_keeps_identifiers_and_bullets(self):
        self.assertEqual(clean_markdown("RISK_LEVEL_X"), "RISK_LEVEL_X")
        self.assertEqual(clean_markdown("* eins\n* zwei"), "* eins\n* zwei")
        self.assertEqual(clean_markdown(""), "")


class TestPrompt(unittest.TestCase):
    def test_prompt_embeds_context_and_text(self):
        articles = [
            ReferenceArticle(
                id="Art. 8",
                heading="Datensicherheit",
                text="Der Verantwortliche  gewährleistet\n eine angemessene Sicherheit.",
            ),
            ReferenceArticle(id="Art. 9", heading=None, text="Auftragsbearbeitung."),
        ]
        prompt = build_prompt("Wir speichern Kundendaten.", articles)
        self.assertIn(
            "Art. 8 – Datensicherheit: Der Verantwortliche gewährleistet eine angemessene Sicherheit."
            "\n\nArt. 9: Auftragsbearbeitung.",
            prompt,
        )
        self.assertIn('"Wir speichern Kundendaten."', prompt)
        self.assertIn("Datenschutzgesetz, DSG, SR 235.1", prompt)
        self.assertIn("Strafgesetzbuch, StGB, SR 311.0", prompt)
        self.assertNotIn(NO_CONTEXT_PLACEHOLDER, prompt)
        self.assertTrue(prompt.endswith(output_contract()))

    def test_prompt_without_context(self):
        prompt = build_prompt("Text", [])
        self.assertIn(NO_CONTEXT_PLACEHOLDER, prompt)


class TestAssembler(unittest.TestCase):
    def test_assess_reply_collects_references_from_whole_reply(self):
        assessment = assess_reply(FULL_REPLY)
        texts = [ref.text for ref in assessment.legal_references]
        self.assertEqual(
            texts,
            ["Art. 5 DSG", "Art. 8 DSG", "Art. 8 Abs. 2 DSG", "Art. 19 DSG", "Art. 9 DSG"],
        )
        self.assertEqual(assessment.risk_level, "HIGH")
        data = assessment.to_dict()
        self.assertEqual(data["riskLevel"], "HIGH")
        self.assertEqual(data["netRisks"], "Geringes Restrisiko.")
        self.assertEqual(data["legalReferences"][0]["url"][-6:], "#art_5")

    def test_assemble_is_plain_aggregation(self):
        parsed = parse_response("SUMMARY: Kurz.")
        reference = LegalReference(law="BV", text="Art. 13 BV", url="https://example.org#art_13", article="13")
        assessment = assemble_assessment(parsed, [reference])
        self.assertEqual(assessment.summary, "Kurz.")
        self.assertEqual(assessment.legal_references, [reference])
        self.assertEqual(assessment.recommendations, [NO_RECOMMENDATIONS])


class TestEngine(unittest.TestCase):
    def setUp(self):
        self.articles = (
            ReferenceArticle(id="Art. 6", heading="Grundsätze", text="Personendaten rechtmässig bearbeiten."),
            ReferenceArticle(id="Art. 70", heading=None, text="Inkrafttreten."),
        )

    def _config(self, **overrides):
        values = {
            "api_key": "test-key",
            "base_url": "https://openrouter.ai/api/v1",
            "model": "test/model",
        }
        values.update(overrides)
        return AppConfig(**values)

    def test_run_assessment_with_mocked_llm(self):
        usage = {"prompt_total": 10, "prompt_cached": 0, "prompt_uncached": 10, "completion": 5}
        with patch("Assessor.app.assessment.engine.create_openai_client", return_value=object()):
            with patch(
                "Assessor.app.assessment.engine.chat_complete_with_usage",
                return_value=(FULL_REPLY, usage),
            ) as chat:
                run = run_assessment("Wir bearbeiten Personendaten.", self.articles, self._config())
        self.assertEqual(run.model, "test/model")
        self.assertEqual(run.token_usage, usage)
        self.assertEqual(run.assessment.risk_level, "HIGH")
        self.assertEqual(len(run.assessment.legal_references), 5)
        prompt = chat.call_args.kwargs["user_prompt"]
        self.assertIn("Art. 70: Inkrafttreten.", prompt)
        self.assertEqual(chat.call_args.kwargs["model"], "test/model")

    def test_requested_model_overrides_default(self):
        with patch("Assessor.app.assessment.engine.create_openai_client", return_value=object()):
            with patch(
                "Assessor.app.assessment.engine.chat_complete_with_usage",
                return_value=("", {}),
            ) as chat:
                run = run_assessment("Text", (), self._config(), model="other/model")
        self.assertEqual(chat.call_args.kwargs["model"], "other/model")
        self.assertEqual(run.assessment.summary, NO_SUMMARY)
        self.assertIn(NO_CONTEXT_PLACEHOLDER, chat.call_args.kwargs["user_prompt"])

    def test_empty_text_is_rejected(self):
        with self.assertRaises(ValueError):
            run_assessment("   ", self.articles, self._config())

    def test_select_context_modes(self):
        full = select_context("Personendaten", self.articles, self._config())
        self.assertEqual(full, list(self.articles))
        ranked = select_context(
            "Personendaten",
            self.articles,
            self._config(context_mode="ranked", context_limit=1),
        )
        self.assertEqual(ranked, [self.articles[0]])


if __name__ == "__main__":
    unittest.main()
