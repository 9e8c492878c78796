"""Request body parsing shared by the service dispatchers."""

import json
from typing import Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from .errors import InputError

M = TypeVar("M", bound=BaseModel)


async def read_model(request: Request, model: Type[M], message: str) -> M:
    """Parse the JSON body of `request` into `model`.

    Args:
        request: Incoming request.
        model: Pydantic model describing the body.
        message: Error text reported when required fields are missing or malformed.

    Raises:
        InputError: 400 when the body is not JSON or does not fit `model`.
    """
    raw = await request.body()
    try:
        payload = json.loads(raw) if raw else {}
    except ValueError as exc:
        raise InputError("Request body must be valid JSON") from exc
    if not isinstance(payload, dict):
        raise InputError(message)
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise InputError(message) from exc
