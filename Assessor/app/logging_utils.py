from __future__ import annotations

from pathlib import Path
from typing import Any, Dict
import hashlib
import json
import logging
import os
import threading

LOGGER_NAMESPACE = "swiss_assessment"
DEFAULT_LOG_FILE = Path("output") / "logs" / "swiss_assessment.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_DISABLED_PATHS = {"-", "off", "none"}
_TRUTHY = {"1", "true", "yes", "on"}

_lock = threading.Lock()
_configured = False


def setup_logging() -> None:
    """Attach file and console handlers to the project logger once per process.

    LOG_PATH set to "-", "off" or "none" keeps logging on the console only.
    """
    global _configured
    if _configured:
        return
    with _lock:
        if _configured:
            return
        root = logging.getLogger(LOGGER_NAMESPACE)
        level_name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
        root.setLevel(getattr(logging, level_name, logging.INFO))
        formatter = logging.Formatter(LOG_FORMAT)
        log_file = _resolve_log_file()
        if log_file is not None:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)
        root.propagate = False
        _configured = True


def _resolve_log_file() -> Path | None:
    raw = os.getenv("LOG_PATH", "").strip()
    if raw.lower() in _DISABLED_PATHS:
        return None
    if not raw:
        return Path.cwd() / DEFAULT_LOG_FILE
    return Path(raw).expanduser().resolve()


def get_logger(name: str) -> logging.Logger:
    setup_logging()
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


def is_llm_content_logging_enabled() -> bool:
    return os.getenv("LOG_LLM_CONTENT", "false").strip().lower() in _TRUTHY


def content_fields(name: str, text: str) -> Dict[str, Any]:
    """Describe user or model text for a log record.

    The text itself is only included when LOG_LLM_CONTENT is enabled; otherwise
    its length and a short digest identify it.
    """
    fields: Dict[str, Any] = {f"{name}_chars": len(text)}
    if is_llm_content_logging_enabled():
        fields[name] = text
    else:
        fields[f"{name}_sha256"] = hashlib.sha256(text.encode("utf-8")).hexdigest()[:12]
    return fields


def safe_json(value) -> str:
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)
