"""
Health checks and information about the caller
"""
from fastapi import APIRouter, Depends

from auth.dependencies import get_current_user
from models import Principal

router = APIRouter(prefix="/api", tags=["Meta"])


@router.get("/me", response_model=Principal)
async def get_me(user: Principal = Depends(get_current_user)):
    """The authenticated caller, as the API sees them"""
    return user


@router.get("/ping")
async def ping():
    return {"message": "pong"}


@router.get("/pong")
async def pong(user: Principal = Depends(get_current_user)):
    """Like ping, but only answers callers with a valid token"""
    return {"message": "ping", "user": user.id}
