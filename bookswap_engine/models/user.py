from typing import TypedDict


class UserDocument(TypedDict):

    id: str
    name: str
