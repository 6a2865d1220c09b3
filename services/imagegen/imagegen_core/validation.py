from __future__ import annotations

from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .models import GenerationRequest


def _error_field(error: Mapping[str, Any]) -> str:
    loc = error.get("loc") or ()
    return ".".join(str(part) for part in loc) or "request"


def validate_request(raw: Any) -> GenerationRequest:
    if isinstance(raw, GenerationRequest):
        return raw
    if not isinstance(raw, Mapping):
        raise ValidationError("request", "must be an object")
    # Absent optionals are sent as nulls by some hosts; let the defaults apply.
    payload = {key: value for key, value in raw.items() if value is not None}
    try:
        return GenerationRequest.model_validate(payload)
    except PydanticValidationError as exc:
        errors = exc.errors()
        first = errors[0] if errors else {}
        raise ValidationError(_error_field(first), str(first.get("msg") or "invalid")) from exc
