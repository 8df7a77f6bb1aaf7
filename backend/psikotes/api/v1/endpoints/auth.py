from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.config import settings
from ....core.database import get_async_db
from ....services.auth_service import AuthService
from ....services.user_service import EmailAlreadyRegisteredError
from ....schemas.auth import LoginRequest, RegisterRequest, Token
from ....schemas.user import User

router = APIRouter()


def set_auth_cookie(response: Response, token: Token):
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token.access_token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=settings.environment == "production",
        path=settings.base_path or "/",
    )


def _client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
async def register_user(
    payload: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_async_db)
):
    try:
        user, token = await AuthService(db).register(payload.email, payload.password, payload.name)
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    set_auth_cookie(response, token)
    return user


@router.post("/login", response_model=User)
async def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_async_db)
):
    authenticated = await AuthService(db).authenticate_and_create_token(
        payload.email,
        payload.password,
        ip=_client_ip(request),
        user_agent=request.headers.get("user-agent", "unknown"),
    )
    if not authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email atau password salah.",
        )

    user, token = authenticated
    set_auth_cookie(response, token)
    return user


@router.post("/token", response_model=Token)
async def login_for_access_token(
    payload: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_async_db)
):
    """Same as /login but returns the bearer token, for scripts."""
    authenticated = await AuthService(db).authenticate_and_create_token(
        payload.email, payload.password, ip=_client_ip(request)
    )
    if not authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email atau password salah.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return authenticated[1]


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(settings.auth_cookie_name, path=settings.base_path or "/")
    return {"success": True}
