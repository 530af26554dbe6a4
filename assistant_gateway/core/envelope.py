"""Uniform success/error response envelope.

Every handler result leaves the core as exactly one ``Envelope``. Handlers
never raise past their own boundary: ``handle_request`` converts failures into
error envelopes carrying the underlying message verbatim.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError, model_validator

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class EnvelopeStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class Envelope(BaseModel):
    """``{status, data?, error?}`` with mutually exclusive ``data``/``error``."""

    status: EnvelopeStatus
    data: Optional[Any] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _check_exclusive(self) -> "Envelope":
        if self.status is EnvelopeStatus.SUCCESS and self.error is not None:
            raise ValueError("success envelope cannot carry an error")
        if self.status is EnvelopeStatus.ERROR:
            if self.data is not None:
                raise ValueError("error envelope cannot carry data")
            if self.error is None:
                self.error = "Unknown error"
        return self

    @classmethod
    def success(cls, data: Any = None) -> "Envelope":
        return cls(status=EnvelopeStatus.SUCCESS, data=data)

    @classmethod
    def failure(cls, error: str) -> "Envelope":
        return cls(status=EnvelopeStatus.ERROR, error=error)

    @property
    def ok(self) -> bool:
        return self.status is EnvelopeStatus.SUCCESS

    @property
    def http_status(self) -> int:
        return 200 if self.ok else 500

    def to_wire(self) -> Dict[str, Any]:
        """Wire form; absent members are omitted rather than sent as null."""
        body: Dict[str, Any] = {"status": self.status.value}
        if self.ok:
            if self.data is not None:
                body["data"] = self.data
        else:
            body["error"] = self.error
        return body


def error_message(exc: BaseException) -> str:
    message = str(exc)
    return message if message else "Unknown error"


async def handle_request(fn: Callable[[], Awaitable[Any]]) -> Envelope:
    """Run ``fn`` and wrap its outcome in an envelope.

    A returned ``Envelope`` is passed through unchanged; any other value
    becomes the ``data`` of a success envelope.
    """
    try:
        result = await fn()
    except Exception as e:
        logger.warning(f"Handler failed: {e.__class__.__name__}: {e}")
        return Envelope.failure(error_message(e))
    if isinstance(result, Envelope):
        return result
    return Envelope.success(result)


# Request validation


class RequestValidationFailed(Exception):
    """Payload rejected before a handler was invoked (HTTP 400)."""

    status_code = 400


class MissingParametersError(RequestValidationFailed):
    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required parameters: {', '.join(self.missing)}")


class InvalidParametersError(RequestValidationFailed):
    pass


def required_fields(model: Type[BaseModel]) -> List[str]:
    """Wire names of the required fields of ``model``, in declaration order."""
    return [
        field.alias or name for name, field in model.model_fields.items() if field.is_required()
    ]


def parse_payload(model: Type[M], data: Mapping[str, Any]) -> M:
    """Validate a decoded JSON object against ``model``.

    Fields may be given by wire name or by attribute name. Missing required
    fields raise ``MissingParametersError``; any other schema violation
    raises ``InvalidParametersError``.
    """
    missing = [
        field.alias or name
        for name, field in model.model_fields.items()
        if field.is_required()
        and data.get(field.alias or name) is None
        and data.get(name) is None
    ]
    if missing:
        raise MissingParametersError(missing)
    try:
        return model.model_validate(dict(data))
    except ValidationError as e:
        raise InvalidParametersError(f"Invalid parameters: {format_validation_errors(e)}") from e


def format_validation_errors(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "; ".join(parts)
