"""Shared API model helpers"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MoneyOut(ApiModel):
    """Amount in minor units (paise for INR)"""
    amount: int
    currency: str


class ErrorResponse(ApiModel):
    detail: str
    reason: str
