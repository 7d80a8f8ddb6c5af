from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple
import os

from Assessor.app.logging_utils import setup_logging


DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "x-ai/grok-4.1-fast:free"
DEFAULT_APP_URL = "http://localhost:3001"
DEFAULT_PASSWORD = "mypassword"
CONTEXT_MODES = {"full", "ranked"}


@dataclass(frozen=True)
class AppConfig:
    api_key: str
    base_url: str
    model: str
    models: Tuple[str, ...] = field(default_factory=tuple)
    app_url: str = DEFAULT_APP_URL
    app_password: str = DEFAULT_PASSWORD
    reference_xml_path: Path = Path("dsg.xml")
    context_mode: str = "full"
    context_limit: int = 5
    temperature: float = 0.2
    request_timeout: float = 120.0

    @property
    def available_models(self) -> Tuple[str, ...]:
        return self.models or (self.model,)

    @staticmethod
    def from_env(model: Optional[str] = None) -> "AppConfig":
        _load_dotenv()
        setup_logging()
        api_key = os.getenv("OPENROUTER_API_KEY", "").strip()
        base_url = os.getenv("OPENROUTER_BASE_URL", "").strip() or DEFAULT_BASE_URL
        models_raw = os.getenv("OPENROUTER_MODEL", "").strip() or DEFAULT_MODEL
        models = tuple(item.strip() for item in models_raw.split(",") if item.strip())
        if not models:
            models = (DEFAULT_MODEL,)
        selected_model = (model or "").strip() or models[0]
        app_url = (
            os.getenv("OPENROUTER_APP_URL", "").strip()
            or os.getenv("VERCEL_URL", "").strip()
            or DEFAULT_APP_URL
        )
        app_password = os.getenv("APP_PASSWORD", "") or DEFAULT_PASSWORD
        xml_path_raw = os.getenv("DSG_XML_PATH", "").strip()
        if xml_path_raw:
            reference_xml_path = Path(xml_path_raw).expanduser()
        else:
            reference_xml_path = _project_root() / "dsg.xml"
        context_mode = os.getenv("CONTEXT_MODE", "").strip().lower()
        if context_mode not in CONTEXT_MODES:
            context_mode = "full"
        context_limit = 5
        context_limit_raw = os.getenv("CONTEXT_LIMIT", "").strip()
        if context_limit_raw:
            try:
                context_limit = max(1, int(context_limit_raw))
            except ValueError:
                context_limit = 5
        temperature = 0.2
        temperature_raw = os.getenv("LLM_TEMPERATURE", "").strip()
        if temperature_raw:
            try:
                temperature = min(2.0, max(0.0, float(temperature_raw)))
            except ValueError:
                temperature = 0.2
        request_timeout = 120.0
        timeout_raw = os.getenv("LLM_TIMEOUT", "").strip()
        if timeout_raw:
            try:
                request_timeout = max(1.0, float(timeout_raw))
            except ValueError:
                request_timeout = 120.0
        return AppConfig(
            api_key=api_key,
            base_url=base_url,
            model=selected_model,
            models=models,
            app_url=app_url,
            app_password=app_password,
            reference_xml_path=reference_xml_path,
            context_mode=context_mode,
            context_limit=context_limit,
            temperature=temperature,
            request_timeout=request_timeout,
        )


def _project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _load_dotenv() -> None:
    env_path = _project_root() / ".env"
    if not env_path.exists():
        return
    for line in env_path.read_text(encoding="utf-8").splitlines():
        text = line.strip()
        if not text or text.startswith("#") or "=" not in text:
            continue
        key, value = text.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value
