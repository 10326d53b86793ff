from fastapi import APIRouter, Depends

from bookswap_engine.engine import Engine
from bookswap_engine.schemas.session import LoginRequest, SessionPublic
from bookswap_engine.utils.dependencies import get_engine


router = APIRouter(prefix="/session", tags=["session"])


@router.get("", response_model=SessionPublic)
async def current_session(engine: Engine = Depends(get_engine)):
    """
    Stand-in for the marketplace's auth: exposes who is logged in to this browsing session.
    """
    user = engine.session.current_user()
    if user is None:
        return SessionPublic(logged_in=False)
    return SessionPublic(logged_in=True, id=user["id"], name=user["name"])


@router.post("/login", response_model=SessionPublic)
async def login(body: LoginRequest, engine: Engine = Depends(get_engine)):
    user = engine.login(body.id, body.name)
    return SessionPublic(logged_in=True, id=user["id"], name=user["name"])


@router.post("/logout", response_model=SessionPublic)
async def logout(engine: Engine = Depends(get_engine)):
    engine.logout()
    return SessionPublic(logged_in=False)
