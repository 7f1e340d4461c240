"""
Authentication routes.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from carhub.database import get_db
from carhub.models.user import User
from carhub.schemas.user import LoginRequest, Token, User as UserSchema
from carhub.auth import authenticate_user, create_access_token, get_current_active_user

router = APIRouter(prefix="/auth", tags=["auth"])


async def issue_token(db: AsyncSession, username: str, password: str) -> Token:
    user = await authenticate_user(db, username, password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return Token(access_token=create_access_token(user.username), token_type="bearer")


@router.post("/login", response_model=Token)
async def login(credentials: LoginRequest, db: AsyncSession = Depends(get_db)):
    """
    Exchange username and password for a bearer token.
    """
    return await issue_token(db, credentials.username, credentials.password)


@router.post("/token", response_model=Token, include_in_schema=False)
async def login_form(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    """OAuth2 form login used by the interactive docs."""
    return await issue_token(db, form_data.username, form_data.password)


@router.get("/me", response_model=UserSchema)
async def read_current_user(current_user: User = Depends(get_current_active_user)):
    return current_user
