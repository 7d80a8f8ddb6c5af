from typing import Optional, Sequence

from Assessor.app.assessment.assembler import assess_reply
from Assessor.app.assessment.prompt import build_prompt
from Assessor.app.config import AppConfig
from Assessor.app.legal.registry import DEFAULT_LAW_REGISTRY, LawUrlRegistry
from Assessor.app.legal.retrieval import retrieve_context
from Assessor.app.llm.openai_client import (
    chat_complete_with_usage,
    create_openai_client,
)
from Assessor.app.logging_utils import get_logger, safe_json
from Assessor.app.models import AssessmentRun, ReferenceArticle


def run_assessment(
    user_text: str,
    articles: Sequence[ReferenceArticle],
    config: AppConfig,
    model: Optional[str] = None,
    registry: LawUrlRegistry = DEFAULT_LAW_REGISTRY,
) -> AssessmentRun:
    if not user_text or not user_text.strip():
        raise ValueError("Text input is required")
    logger = get_logger("assessment")
    selected_model = (model or "").strip() or config.model
    logger.info(
        "assessment_request %s",
        safe_json({"model": selected_model, "chars": len(user_text)}),
    )
    context = select_context(user_text, articles, config)
    prompt = build_prompt(user_text, context)
    client = create_openai_client(
        api_key=config.api_key,
        base_url=config.base_url,
        app_url=config.app_url,
        timeout=config.request_timeout,
    )
    response_text, token_usage = chat_complete_with_usage(
        client=client,
        model=selected_model,
        user_prompt=prompt,
        temperature=config.temperature,
    )
    assessment = assess_reply(response_text, registry)
    logger.info(
        "assessment_status %s",
        safe_json(
            {
                "status": "success",
                "risk_level": assessment.risk_level,
                "references": len(assessment.legal_references),
            }
        ),
    )
    return AssessmentRun(
        assessment=assessment,
        model=selected_model,
        token_usage=token_usage,
    )


def select_context(
    user_text: str,
    articles: Sequence[ReferenceArticle],
    config: AppConfig,
) -> list[ReferenceArticle]:
    ranked = retrieve_context(user_text, articles, config.context_limit)
    selected = list(articles) if config.context_mode == "full" else ranked
    get_logger("assessment.context").info(
        "assessment_context %s",
        safe_json(
            {
                "mode": config.context_mode,
                "available": len(articles),
                "ranked": [article.id for article in ranked],
                "selected": len(selected),
            }
        ),
    )
    return selected
