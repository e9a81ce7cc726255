from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Wire format is camelCase (the web client's JSON); Python code uses snake_case.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ActionResult(CamelModel):
    success: bool = True
    message: str | None = None


class ErrorOut(CamelModel):
    success: bool = False
    error: str
