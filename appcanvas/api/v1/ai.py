"""
AI assistant endpoints: widget suggestions, starter templates and layout review.

All three require authentication and share a per-user hourly budget.
"""
from fastapi import APIRouter, Depends, HTTPException, status

from appcanvas.core.security import CurrentUser, get_current_user
from appcanvas.models.schemas import (
    GenerateTemplateRequest,
    GenerateTemplateResponse,
    OptimizeLayoutRequest,
    OptimizeLayoutResponse,
    SuggestWidgetsRequest,
    SuggestWidgetsResponse,
)
from appcanvas.services.ai_assistant import AIAssistant, get_ai_assistant
from appcanvas.utils.logging import get_logger, log_context
from appcanvas.utils.rate_limiter import rate_limiter

router = APIRouter(prefix="/ai", tags=["AI"])
logger = get_logger(__name__)


async def enforce_ai_rate_limit(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Authenticated caller, counted against the AI budget"""
    allowed, info = await rate_limiter.check_rate_limit(user.id)
    if not allowed:
        with log_context(user_id=user.id):
            logger.warning("ai.rate_limit.exceeded", extra=info)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "rate_limit_exceeded",
                "message": f"AI request limit of {info['limit']} per window reached",
                "retry_after": info.get("retry_after"),
            },
            headers={"Retry-After": str(info.get("retry_after", 0))},
        )
    return user


@router.post(
    "/suggest-widgets",
    response_model=SuggestWidgetsResponse,
    summary="Suggest widgets for an app type",
)
async def suggest_widgets(
    payload: SuggestWidgetsRequest,
    user: CurrentUser = Depends(enforce_ai_rate_limit),
    assistant: AIAssistant = Depends(get_ai_assistant),
) -> SuggestWidgetsResponse:
    with log_context(user_id=user.id):
        suggestions = await assistant.suggest_widgets(payload.app_type, payload.description)
        logger.info(
            "ai.suggest.completed",
            extra={"app_type": payload.app_type, "count": len(suggestions)}
        )
        return SuggestWidgetsResponse(suggestions=suggestions)


@router.post(
    "/generate-template",
    response_model=GenerateTemplateResponse,
    summary="Generate a starter layout",
)
async def generate_template(
    payload: GenerateTemplateRequest,
    user: CurrentUser = Depends(enforce_ai_rate_limit),
    assistant: AIAssistant = Depends(get_ai_assistant),
) -> GenerateTemplateResponse:
    with log_context(user_id=user.id):
        template = await assistant.generate_template(payload.app_type, payload.description)
        logger.info(
            "ai.template.completed",
            extra={"app_type": payload.app_type, "generated": template is not None}
        )
        return GenerateTemplateResponse(template=template)


@router.post(
    "/optimize-layout",
    response_model=OptimizeLayoutResponse,
    summary="Review a layout and propose positions",
)
async def optimize_layout(
    payload: OptimizeLayoutRequest,
    user: CurrentUser = Depends(enforce_ai_rate_limit),
    assistant: AIAssistant = Depends(get_ai_assistant),
) -> OptimizeLayoutResponse:
    with log_context(user_id=user.id):
        optimized = await assistant.optimize_layout(payload.components)
        logger.info(
            "ai.optimize.completed",
            extra={
                "components": len(payload.components),
                "improvements": len(optimized.improvements),
            }
        )
        return OptimizeLayoutResponse(optimized_layout=optimized)


@router.get(
    "/status",
    summary="Assistant provider state",
)
async def assistant_status(
    user: CurrentUser = Depends(get_current_user),
    assistant: AIAssistant = Depends(get_ai_assistant),
) -> dict:
    return assistant.orchestrator.get_status()
