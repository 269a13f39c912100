from __future__ import annotations

import math
import time
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Response, status

from tour_forms.core.client_ip import get_client_ip
from tour_forms.schemas.forms import FormType
from tour_forms.schemas.submissions import SubmissionResult
from tour_forms.services.submission_service import SubmissionPipeline, get_submission_pipeline

router = APIRouter(tags=["Forms"])

RawBody = Annotated[Any, Body()]
Pipeline = Annotated[SubmissionPipeline, Depends(get_submission_pipeline)]
ClientIp = Annotated[str, Depends(get_client_ip)]

ERROR_STATUS = {
    "rate_limited": status.HTTP_429_TOO_MANY_REQUESTS,
    "validation_failed": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "persistence_failed": status.HTTP_503_SERVICE_UNAVAILABLE,
}

RESPONSES: dict[int | str, dict[str, Any]] = {
    429: {"model": SubmissionResult, "description": "Rate limit exhausted; see Retry-After."},
    422: {"model": SubmissionResult, "description": "One or more fields failed validation."},
    503: {"model": SubmissionResult, "description": "The submission could not be stored."},
}


def _apply_status(result: SubmissionResult, response: Response) -> SubmissionResult:
    """Translate a pipeline result into the HTTP status (and Retry-After)."""

    if result.success:
        response.status_code = status.HTTP_201_CREATED
        return result

    response.status_code = ERROR_STATUS.get(result.error_code or "", status.HTTP_400_BAD_REQUEST)
    if result.rate_limited and result.reset_time is not None:
        retry_after = max(1, math.ceil(result.reset_time - time.time()))
        response.headers["Retry-After"] = str(retry_after)
    return result


async def _submit(
    form_type: FormType,
    payload: Any,
    pipeline: SubmissionPipeline,
    client_ip: str,
    response: Response,
) -> SubmissionResult:
    result = await pipeline.submit(form_type, payload, client_ip)
    return _apply_status(result, response)


@router.post(
    "/tour-bookings",
    response_model=SubmissionResult,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses=RESPONSES,
)
async def create_tour_booking(
    response: Response,
    pipeline: Pipeline,
    client_ip: ClientIp,
    payload: RawBody = None,
) -> SubmissionResult:
    """Request a tour booking.

    Limited to 3 attempts per IP per 10 minutes and 2 per email per 5 minutes.
    The stored record carries ``total_amount`` (tour price x guests) when the
    tour can be looked up.
    """
    return await _submit(FormType.TOUR_BOOKING, payload, pipeline, client_ip, response)


@router.post(
    "/airport-pickups",
    response_model=SubmissionResult,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses=RESPONSES,
)
async def create_airport_pickup(
    response: Response,
    pipeline: Pipeline,
    client_ip: ClientIp,
    payload: RawBody = None,
) -> SubmissionResult:
    """Request an airport transfer (``service_type``: pickup, dropoff or both)."""
    return await _submit(FormType.AIRPORT_PICKUP, payload, pipeline, client_ip, response)


@router.post(
    "/contact",
    response_model=SubmissionResult,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses=RESPONSES,
)
async def create_contact_message(
    response: Response,
    pipeline: Pipeline,
    client_ip: ClientIp,
    payload: RawBody = None,
) -> SubmissionResult:
    """Send a message through the contact form."""
    return await _submit(FormType.CONTACT, payload, pipeline, client_ip, response)


@router.post(
    "/newsletter",
    response_model=SubmissionResult,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses=RESPONSES,
)
async def subscribe_newsletter(
    response: Response,
    pipeline: Pipeline,
    client_ip: ClientIp,
    payload: RawBody = None,
) -> SubmissionResult:
    """Subscribe an email address to the newsletter (once per hour per address)."""
    return await _submit(FormType.NEWSLETTER, payload, pipeline, client_ip, response)
