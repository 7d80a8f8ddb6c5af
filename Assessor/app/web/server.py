from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence
import argparse
import secrets
import tempfile

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
import openai

from Assessor.app.assessment.engine import run_assessment
from Assessor.app.config import AppConfig
from Assessor.app.export.pdf_report import assessment_from_dict, render_assessment_pdf
from Assessor.app.legal.citations import extract_legal_references
from Assessor.app.legal.parser import load_reference_articles
from Assessor.app.logging_utils import get_logger, safe_json
from Assessor.app.models import ReferenceArticle
from Assessor.app.preprocess.extract_text import SUPPORTED_SUFFIXES, DocumentError, extract_text


MISSING_KEY_MESSAGE = (
    "OPENROUTER_API_KEY fehlt – Bitte setzen Sie OPENROUTER_API_KEY in Ihrer "
    "Umgebungsvariablen."
)
PDF_FILENAME = "datenschutz-analyse.pdf"


@dataclass(frozen=True)
class ServerConfig:
    app_config: AppConfig
    static_dir: Path
    articles: Optional[Sequence[ReferenceArticle]] = None


class PasswordRequired(Exception):
    pass


def create_app(config: ServerConfig) -> FastAPI:
    app = FastAPI(title="Swiss Legal Assessment")
    logger = get_logger("api")
    app_config = config.app_config
    if config.articles is None:
        articles = load_reference_articles(app_config.reference_xml_path)
    else:
        articles = tuple(config.articles)
    if config.static_dir.exists():
        app.mount(
            "/static",
            StaticFiles(directory=str(config.static_dir)),
            name="static",
        )

    @app.exception_handler(PasswordRequired)
    async def password_required(request: Request, exc: PasswordRequired):
        logger.info("api_status %s", safe_json({"path": request.url.path, "status": "unauthorized"}))
        return JSONResponse(
            {"error": "Unauthorized. Password required.", "requiresPassword": True},
            status_code=401,
        )

    async def require_password(request: Request) -> None:
        provided = request.headers.get("x-app-password")
        if not provided and "application/json" in request.headers.get("content-type", ""):
            payload = await _read_json_payload(request)
            if isinstance(payload, dict) and isinstance(payload.get("password"), str):
                provided = payload["password"]
        if not provided or not _password_matches(provided, app_config.app_password):
            raise PasswordRequired()

    @app.get("/")
    async def serve_index():
        return _serve_index(config)

    @app.get("/index.html")
    async def serve_index_alias():
        return _serve_index(config)

    @app.get("/api/models")
    async def list_models():
        return JSONResponse(
            {
                "models": list(app_config.available_models),
                "defaultModel": app_config.model,
            }
        )

    @app.post("/api/auth/verify", dependencies=[Depends(require_password)])
    async def verify_password():
        return JSONResponse({"success": True})

    @app.post("/api/analyze", dependencies=[Depends(require_password)])
    async def analyze(request: Request):
        payload = await _read_json_payload(request)
        if payload is None:
            return _error("/api/analyze", "invalid json", 400)
        text = payload.get("text")
        if not isinstance(text, str) or not text.strip():
            return _error("/api/analyze", "Text input is required", 400)
        return await _run_and_respond("/api/analyze", text, payload.get("model"))

    @app.post("/api/analyze/upload", dependencies=[Depends(require_password)])
    async def analyze_upload(
        file: UploadFile | None = File(None),
        model: str | None = Form(None),
    ):
        if file is None:
            return _error("/api/analyze/upload", "file is required", 400)
        filename = Path(file.filename or "").name
        if not filename:
            return _error("/api/analyze/upload", "invalid filename", 400)
        suffix = Path(filename).suffix.lower()
        if suffix not in SUPPORTED_SUFFIXES:
            return _error("/api/analyze/upload", "unsupported file type", 400)
        data = await file.read()
        with tempfile.TemporaryDirectory() as temp_dir:
            upload_path = Path(temp_dir) / filename
            upload_path.write_bytes(data)
            try:
                text = extract_text(upload_path)
            except DocumentError as exc:
                return _error("/api/analyze/upload", str(exc), 400)
        return await _run_and_respond("/api/analyze/upload", text, model)

    @app.post("/api/references", dependencies=[Depends(require_password)])
    async def references(request: Request):
        payload = await _read_json_payload(request)
        if payload is None:
            return _error("/api/references", "invalid json", 400)
        text = payload.get("text")
        if not isinstance(text, str):
            return _error("/api/references", "text is required", 400)
        found = extract_legal_references(text)
        return JSONResponse({"legalReferences": [item.to_dict() for item in found]})

    @app.post("/api/export/pdf", dependencies=[Depends(require_password)])
    async def export_pdf(request: Request):
        payload = await _read_json_payload(request)
        if payload is None:
            return _error("/api/export/pdf", "invalid json", 400)
        result = payload.get("result")
        if not isinstance(result, dict):
            return _error("/api/export/pdf", "result is required", 400)
        source_text = payload.get("text")
        pdf_bytes = render_assessment_pdf(
            assessment_from_dict(result),
            source_text=source_text if isinstance(source_text, str) else "",
        )
        logger.info("api_status %s", safe_json({"path": "/api/export/pdf", "status": "success", "bytes": len(pdf_bytes)}))
        return Response(
            content=pdf_bytes,
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{PDF_FILENAME}"'},
        )

    async def _run_and_respond(path: str, text: str, model: Any) -> JSONResponse:
        if not app_config.api_key:
            return _error(path, MISSING_KEY_MESSAGE, 503)
        requested_model = model.strip() if isinstance(model, str) else ""
        try:
            run = await run_in_threadpool(
                run_assessment,
                text,
                articles,
                app_config,
                model=requested_model or None,
            )
        except ValueError as exc:
            return _error(path, str(exc), 400)
        except openai.APIConnectionError:
            return _error(
                path,
                "Cannot connect to OpenRouter. Please verify OPENROUTER_BASE_URL and API key.",
                503,
            )
        except openai.APIStatusError as exc:
            return _error(path, f"OpenRouter API error: {_api_error_message(exc)}", 500)
        except Exception as exc:
            logger.exception("api_failure %s", safe_json({"path": path}))
            return _error(path, f"Internal server error: {exc}", 500)
        body = run.assessment.to_dict()
        body["model"] = run.model
        body["tokenUsage"] = run.token_usage or {}
        logger.info("api_status %s", safe_json({"path": path, "status": "success"}))
        return JSONResponse(body)

    def _error(path: str, message: str, status_code: int) -> JSONResponse:
        log = logger.error if status_code >= 500 else logger.info
        log("api_status %s", safe_json({"path": path, "status": "error", "error": message}))
        return JSONResponse({"error": message}, status_code=status_code)

    return app


def _serve_index(config: ServerConfig):
    target = config.static_dir / "index.html"
    if not target.exists():
        return JSONResponse({"error": "Not found"}, status_code=404)
    return FileResponse(target, media_type="text/html")


def _password_matches(provided: str, expected: str) -> bool:
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def _api_error_message(exc: Exception) -> str:
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        error = body.get("error", body)
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return str(exc)


async def _read_json_payload(request: Request) -> dict[str, Any] | None:
    try:
        payload = await request.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    return payload


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=3001)
    parser.add_argument("--static-dir")
    args = parser.parse_args()

    root = Path(__file__).resolve().parents[3]
    static_dir = Path(args.static_dir).resolve() if args.static_dir else root / "client-dist"
    config = ServerConfig(
        app_config=AppConfig.from_env(),
        static_dir=static_dir,
    )
    app = create_app(config)

    import uvicorn

    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
