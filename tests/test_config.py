import os
import unittest
from pathlib import Path
from unittest.mock import patch

from Assessor.app.config import DEFAULT_BASE_URL, DEFAULT_MODEL, AppConfig
from Assessor.app.logging_utils import content_fields, get_logger


class TestAppConfig(unittest.TestCase):
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            with patch("Assessor.app.config._load_dotenv"):
                config = AppConfig.from_env()
        self.assertEqual(config.base_url, DEFAULT_BASE_URL)
        self.assertEqual(config.model, DEFAULT_MODEL)
        self.assertEqual(config.available_models, (DEFAULT_MODEL,))
        self.assertEqual(config.app_password, "mypassword")
        self.assertEqual(config.context_mode, "full")
        self.assertEqual(config.context_limit, 5)
        self.assertEqual(config.api_key, "")
        self.assertEqual(config.reference_xml_path.name, "dsg.xml")

    def test_values_from_environment(self):
        env = {
            "OPENROUTER_API_KEY": " sk-test ",
            "OPENROUTER_MODEL": "first/model, second/model,",
            "VERCEL_URL": "https://assessment.example.ch",
            "APP_PASSWORD": "geheim",
            "DSG_XML_PATH": "/srv/data/dsg.xml",
            "CONTEXT_MODE": "RANKED",
            "CONTEXT_LIMIT": "0",
            "LLM_TEMPERATURE": "abc",
        }
        with patch.dict(os.environ, env, clear=True):
            with patch("Assessor.app.config._load_dotenv"):
                config = AppConfig.from_env()
        self.assertEqual(config.api_key, "sk-test")
        self.assertEqual(config.models, ("first/model", "second/model"))
        self.assertEqual(config.model, "first/model")
        self.assertEqual(config.app_url, "https://assessment.example.ch")
        self.assertEqual(config.app_password, "geheim")
        self.assertEqual(config.reference_xml_path, Path("/srv/data/dsg.xml"))
        self.assertEqual(config.context_mode, "ranked")
        self.assertEqual(config.context_limit, 1)
        self.assertEqual(config.temperature, 0.2)

    def test_explicit_model_wins(self):
        with patch.dict(os.environ, {"OPENROUTER_MODEL": "a/model"}, clear=True):
            with patch("Assessor.app.config._load_dotenv"):
                config = AppConfig.from_env(model="b/model")
        self.assertEqual(config.model, "b/model")
        self.assertEqual(config.available_models, ("a/model",))


class TestLogging(unittest.TestCase):
    def test_content_hidden_by_default(self):
        with patch.dict(os.environ, {"LOG_LLM_CONTENT": ""}):
            fields = content_fields("prompt", "Kundendaten")
        self.assertEqual(fields["prompt_chars"], 11)
        self.assertNotIn("prompt", fields)
        self.assertEqual(len(fields["prompt_sha256"]), 12)

    def test_content_included_when_enabled(self):
        with patch.dict(os.environ, {"LOG_LLM_CONTENT": "yes"}):
            fields = content_fields("content", "Antwort")
        self.assertEqual(fields["content"], "Antwort")
        self.assertNotIn("content_sha256", fields)

    def test_loggers_share_namespace(self):
        self.assertEqual(get_logger("api").name, "swiss_assessment.api")


if __name__ == "__main__":
    unittest.main()
