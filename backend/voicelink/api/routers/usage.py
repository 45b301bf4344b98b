# backend/voicelink/api/routers/usage.py
from fastapi import APIRouter, Depends

from voicelink.api.deps import get_identity_context, get_usage_accountant
from voicelink.core.request_context import RequestIdentityContext
from voicelink.schemas.usage import UsageLimitResponse
from voicelink.services.usage_accountant import UsageAccountant, usage_day

router = APIRouter(tags=["Usage"])


@router.get(
    "/usage-limit",
    response_model=UsageLimitResponse,
    response_model_exclude_none=True,
    summary="How many translations the caller has left today",
)
async def get_usage_limit(
    identity: RequestIdentityContext = Depends(get_identity_context),
    accountant: UsageAccountant = Depends(get_usage_accountant),
) -> UsageLimitResponse:
    status = await accountant.check_limit(
        identity.identity_key, usage_day(), identity.is_authenticated
    )
    return UsageLimitResponse(
        can_translate=status.can_proceed,
        remaining_translations=status.remaining,
        is_authenticated=status.is_authenticated,
        limit_message=status.message,
    )
