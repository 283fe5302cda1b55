from __future__ import annotations

from pydantic import BaseModel, Field


class UserContext(BaseModel, frozen=True):
    """Identity of the caller, passed explicitly into mutations.

    ``shop_id`` is the scope the caller acts in; the platform scope sees
    every shop.
    """

    user_id: int
    user_name: str = Field(min_length=1)
    shop_id: int
