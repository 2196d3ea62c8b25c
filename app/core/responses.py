from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class GenericResponse(BaseModel, Generic[T]):
    """Envelope every endpoint responds with"""
    success: bool
    message: str
    data: Optional[T] = None


def ok(message: str, data=None) -> dict:
    return GenericResponse(success=True, message=message, data=data).model_dump()
