import logging

from fastapi import APIRouter, Depends, HTTPException, status

from serenity.api.deps import bearer_token, get_auth_provider
from serenity.integrations.supabase_auth import AuthError
from serenity.schemas.auth import AuthSessionResponse, SignInRequest, SignUpRequest
from serenity.services.auth import AuthProvider, friendly_auth_message, validate_credentials
from serenity.services.conversation import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()

WELCOME_BACK = "Good to see you again. Take care of yourself today."
WELCOME_NEW = "Your account has been created. You can now start your wellness journey."
SIGNED_OUT = "Take care of yourself. See you soon."


def _provider_failure(exc: AuthError, *, rejected_status: int) -> HTTPException:
    if exc.status_code is None or exc.status_code >= 500:
        logger.warning("Auth provider failure: %s", exc)
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Something went wrong. Please try again later.",
        )
    return HTTPException(status_code=rejected_status, detail=friendly_auth_message(exc))


@router.post(
    "/sign-in",
    response_model=AuthSessionResponse,
    summary="Sign in with email and password.",
)
async def sign_in(
    payload: SignInRequest,
    provider: AuthProvider = Depends(get_auth_provider),
) -> AuthSessionResponse:
    try:
        email, _ = validate_credentials(payload.email, payload.password)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.errors) from exc

    try:
        session = await provider.sign_in(email, payload.password)
    except AuthError as exc:
        raise _provider_failure(exc, rejected_status=status.HTTP_401_UNAUTHORIZED) from exc
    return AuthSessionResponse.from_domain(session, message=WELCOME_BACK)


@router.post(
    "/sign-up",
    response_model=AuthSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account.",
)
async def sign_up(
    payload: SignUpRequest,
    provider: AuthProvider = Depends(get_auth_provider),
) -> AuthSessionResponse:
    try:
        email, display_name = validate_credentials(
            payload.email, payload.password, payload.display_name
        )
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.errors) from exc

    try:
        session = await provider.sign_up(email, payload.password, display_name)
    except AuthError as exc:
        raise _provider_failure(exc, rejected_status=status.HTTP_400_BAD_REQUEST) from exc
    return AuthSessionResponse.from_domain(session, message=WELCOME_NEW)


@router.post("/sign-out", summary="Revoke the current session.")
async def sign_out(
    token: str = Depends(bearer_token),
    provider: AuthProvider = Depends(get_auth_provider),
) -> dict[str, str]:
    try:
        await provider.sign_out(token)
    except AuthError as exc:
        raise _provider_failure(exc, rejected_status=status.HTTP_401_UNAUTHORIZED) from exc
    return {"message": SIGNED_OUT}
