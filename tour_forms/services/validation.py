"""Form validation: raw input -> typed payload or field-level error map.

Validation is dispatched by form type to exactly one schema. Airport pickup
is dispatched a second time by ``service_type`` so conditionally required
fields surface as errors on the fields themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from pydantic import ValidationError

from tour_forms.schemas.forms import (
    AIRPORT_PICKUP_VARIANTS,
    FORM_MODELS,
    FormModel,
    FormType,
    SubmissionPayload,
)

_VALUE_ERROR_PREFIX = "Value error, "
_MISSING = object()


@dataclass(frozen=True)
class ValidationOk:
    payload: SubmissionPayload
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class ValidationFailed:
    field_errors: dict[str, str]
    ok: bool = field(default=False, init=False)


ValidationOutcome = ValidationOk | ValidationFailed


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _message_for(error: Mapping[str, Any], model: type[FormModel], field_name: str) -> str:
    if error.get("type") == "missing" or _is_blank(error.get("input", _MISSING)):
        required = model.required_messages.get(field_name)
        if required:
            return required
    message = str(error.get("msg", "Invalid value"))
    if message.startswith(_VALUE_ERROR_PREFIX):
        message = message[len(_VALUE_ERROR_PREFIX):]
    return message


def field_errors_from(exc: ValidationError, model: type[FormModel]) -> dict[str, str]:
    """Collapse pydantic errors to ``{field: first violated rule's message}``."""

    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = error.get("loc") or ()
        field_name = str(loc[0]) if loc else "__root__"
        if field_name in errors:
            continue
        errors[field_name] = _message_for(error, model, field_name)
    return errors


def _select_model(form_type: FormType, raw_input: Mapping[str, Any]) -> type[FormModel] | dict[str, str]:
    if form_type is not FormType.AIRPORT_PICKUP:
        return FORM_MODELS[form_type]

    service_type = raw_input.get("service_type")
    variant = AIRPORT_PICKUP_VARIANTS.get(service_type) if isinstance(service_type, str) else None
    if variant is None:
        return {"service_type": "Please choose pickup, dropoff, or both."}
    return variant


def validate(form_type: FormType | str, raw_input: Mapping[str, Any] | None) -> ValidationOutcome:
    """Validate raw form input for one form type.

    Args:
        form_type: Which form the input was submitted through.
        raw_input: Decoded request body.

    Returns:
        ValidationOk with the typed payload, or ValidationFailed with a
        field-keyed error map.

    Raises:
        ValueError: If form_type is not a known form.
    """
    form_type = FormType(form_type)
    data: Mapping[str, Any] = raw_input if isinstance(raw_input, Mapping) else {}

    selected = _select_model(form_type, data)
    if isinstance(selected, dict):
        return ValidationFailed(field_errors=selected)

    try:
        payload = selected.model_validate(dict(data))
    except ValidationError as exc:
        return ValidationFailed(field_errors=field_errors_from(exc, selected))

    return ValidationOk(payload=payload)  # type: ignore[arg-type]
