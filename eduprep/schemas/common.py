"""
Shared schema base classes
"""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for wire schemas: camelCase on the wire, snake_case in Python

    Unknown fields are rejected so malformed request bodies fail at the
    boundary instead of being silently dropped.
    """

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "forbid"
        from_attributes = True


class Message(CamelModel):
    """Generic message response"""
    message: str


class ErrorResponse(CamelModel):
    """Error body returned by every exception handler"""
    error: str
    code: str
