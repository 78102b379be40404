from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Request, Response, Query, status
from fastapi.responses import RedirectResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from jobtracker.auth import (
    COOKIE_NAME,
    create_session_token,
    extract_token,
    get_current_user,
    read_session_token,
)
from jobtracker.config import get_settings
from jobtracker.database import get_db
from jobtracker.models import User, Profile
from jobtracker.schemas import SessionResponse, UserResponse, LogoutResponse
from jobtracker.services.identity import (
    STATE_COOKIE,
    STATE_TTL_MINUTES,
    ProviderIdentity,
    build_authorize_url,
    create_state,
    exchange_code,
    get_provider,
    new_nonce,
    verify_state,
)

router = APIRouter()
settings = get_settings()


def _provider_or_404(name: str):
    provider = get_provider(name)
    if not provider:
        raise HTTPException(status_code=404, detail=f"Unknown identity provider: {name}")
    return provider


def _callback_url(request: Request, provider: str) -> str:
    return str(request.url_for("oauth_callback", provider=provider))


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        max_age=settings.session_expire_days * 24 * 60 * 60,
        samesite="lax",
    )


async def upsert_user(db: AsyncSession, provider: str, identity: ProviderIdentity) -> User:
    result = await db.execute(
        select(User).where(
            User.provider == provider,
            User.provider_subject == identity.subject,
        )
    )
    user = result.scalar_one_or_none()

    if not user:
        user = User(
            provider=provider,
            provider_subject=identity.subject,
            email=identity.email,
            display_name=identity.display_name,
        )
        db.add(user)
        await db.flush()
        db.add(Profile(id=user.id, full_name=identity.display_name or ""))
    else:
        user.email = identity.email or user.email
        user.display_name = identity.display_name or user.display_name

    await db.commit()
    await db.refresh(user)
    return user


@router.get("/{provider}/authorize")
async def authorize(provider: str, request: Request):
    idp = _provider_or_404(provider)
    nonce = new_nonce()
    url = build_authorize_url(idp, _callback_url(request, provider), create_state(provider, nonce))
    response = RedirectResponse(url, status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        key=STATE_COOKIE,
        value=nonce,
        httponly=True,
        max_age=STATE_TTL_MINUTES * 60,
        samesite="lax",
    )
    return response


@router.get("/{provider}/callback", name="oauth_callback")
async def callback(
    provider: str,
    request: Request,
    code: str = Query(...),
    state: str = Query(...),
    db: AsyncSession = Depends(get_db),
):
    idp = _provider_or_404(provider)
    if not verify_state(state, provider, request.cookies.get(STATE_COOKIE)):
        raise HTTPException(status_code=400, detail="Invalid sign-in state")

    identity = await exchange_code(idp, code, _callback_url(request, provider))
    user = await upsert_user(db, provider, identity)

    token, _ = create_session_token(user.id)
    response = RedirectResponse(f"{settings.frontend_url}/dashboard", status_code=status.HTTP_302_FOUND)
    _set_session_cookie(response, token)
    response.delete_cookie(STATE_COOKIE)
    return response


@router.get("/session", response_model=SessionResponse)
async def get_session(request: Request, user: User = Depends(get_current_user)):
    token = extract_token(request)
    expires_at = datetime.fromtimestamp(read_session_token(token)["exp"], tz=timezone.utc)
    return SessionResponse(user=UserResponse.model_validate(user), access_token=token, expires_at=expires_at)


@router.post("/refresh", response_model=SessionResponse)
async def refresh_session(response: Response, user: User = Depends(get_current_user)):
    token, expires_at = create_session_token(user.id)
    _set_session_cookie(response, token)
    return SessionResponse(user=UserResponse.model_validate(user), access_token=token, expires_at=expires_at)


@router.post("/logout", response_model=LogoutResponse)
async def logout(response: Response):
    response.delete_cookie(COOKIE_NAME)
    return LogoutResponse(success=True, message="Logged out successfully")
