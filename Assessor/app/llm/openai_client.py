from typing import Optional

from Assessor.app.logging_utils import content_fields, get_logger, safe_json


APP_TITLE = "Swiss Legal Assessment"


def create_openai_client(
    api_key: str,
    base_url: Optional[str],
    app_url: Optional[str] = None,
    timeout: float = 120.0,
):
    from openai import OpenAI

    if not api_key:
        raise ValueError("OPENROUTER_API_KEY is required")
    _ensure_ascii_header(api_key, "OPENROUTER_API_KEY")
    if base_url:
        _ensure_ascii_header(base_url, "OPENROUTER_BASE_URL")
    headers = {"X-Title": APP_TITLE}
    if app_url:
        _ensure_ascii_header(app_url, "OPENROUTER_APP_URL")
        headers["HTTP-Referer"] = app_url
    if base_url:
        return OpenAI(
            api_key=api_key,
            base_url=base_url,
            default_headers=headers,
            timeout=timeout,
        )
    return OpenAI(api_key=api_key, default_headers=headers, timeout=timeout)


def chat_complete_with_usage(
    client,
    model: str,
    user_prompt: str,
    system_prompt: str = "",
    temperature: float = 0.2,
) -> tuple[str, dict[str, int]]:
    logger = get_logger("llm.chat")
    payload = {"model": model, "temperature": temperature}
    payload.update(content_fields("prompt", user_prompt))
    if system_prompt:
        payload.update(content_fields("system_prompt", system_prompt))
    logger.info("llm_request %s", safe_json(payload))
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": user_prompt})
    try:
        response = client.chat.completions.create(
            model=model,
            temperature=temperature,
            messages=messages,
        )
    except Exception as exc:
        logger.error("llm_status %s", safe_json({"status": "error", "error": str(exc)}))
        raise
    content = ""
    choices = getattr(response, "choices", None) or []
    if choices:
        message = choices[0].message
        content = (message.content if message else None) or ""
    logger.info(
        "llm_status %s",
        safe_json({"status": "success", "empty": not content, **content_fields("content", content)}),
    )
    return content, _extract_usage(response)


def _ensure_ascii_header(value: str, name: str) -> None:
    try:
        value.encode("ascii")
    except UnicodeEncodeError as exc:
        raise ValueError(
            f"{name} must be ASCII. Remove non-ASCII characters from the value."
        ) from exc


def _extract_usage(response) -> dict[str, int]:
    usage = getattr(response, "usage", None)
    if not usage:
        return {"prompt_total": 0, "prompt_cached": 0, "prompt_uncached": 0, "completion": 0}
    prompt_total = int(getattr(usage, "prompt_tokens", 0) or 0)
    completion = int(getattr(usage, "completion_tokens", 0) or 0)
    details = getattr(usage, "prompt_tokens_details", None)
    cached = 0
    if isinstance(details, dict):
        cached = int(details.get("cached_tokens", 0) or 0)
    else:
        cached = int(getattr(details, "cached_tokens", 0) or 0)
    prompt_uncached = max(prompt_total - cached, 0)
    return {
        "prompt_total": prompt_total,
        "prompt_cached": cached,
        "prompt_uncached": prompt_uncached,
        "completion": completion,
    }
