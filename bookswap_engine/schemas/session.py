from typing import Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)


class SessionPublic(BaseModel):

    logged_in: bool
    id: Optional[str] = None
    name: Optional[str] = None
