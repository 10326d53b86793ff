from typing import Optional

from fastapi import Depends, Request

from bookswap_engine.engine import Engine
from bookswap_engine.models.user import UserDocument
from bookswap_engine.utils.errors import NoUserError


def get_engine(request: Request) -> Engine:
    return request.app.state.engine


def get_optional_user(engine: Engine = Depends(get_engine)) -> Optional[UserDocument]:
    return engine.session.current_user()


def get_current_user(user: Optional[UserDocument] = Depends(get_optional_user)) -> UserDocument:
    if user is None:
        raise NoUserError("Please log in to continue")
    return user
