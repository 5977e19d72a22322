from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class Address(BaseModel):
    street: str
    zip: int = Field(ge=1000)


class CreateUserValidator(BaseModel):
    full_name: str = Field(min_length=3, max_length=64)
    age: int = Field(ge=18)
    is_admin: bool = False
    role: Literal["admin", "member"]
    birthday: datetime | None = None
    address: Address
    tags: list[str] = []
