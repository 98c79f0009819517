"""Webhook endpoint for Stripe checkout notifications.

The route declares no body parameter, so FastAPI never parses the request
body. The handler reads the raw byte stream itself because the Stripe
signature covers those exact bytes.

This endpoint does NOT require authentication; deliveries are verified
with the Stripe webhook signing secret.
"""

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from relay.models.errors import ErrorResponse
from relay.services.webhook_handler import WebhookHandler
from relay_api.dependencies import get_webhook_handler

router = APIRouter(tags=["webhooks"])

SIGNATURE_HEADER = "Stripe-Signature"


class WebhookResponse(BaseModel):
    """Acknowledgment returned to Stripe."""

    received: bool
    event_id: str | None = None
    event_type: str | None = None
    processing_result: str  # "notified" or "skipped"


async def read_raw_body(request: Request) -> bytes:
    """Accumulate the request body chunks into one byte buffer."""
    chunks = [chunk async for chunk in request.stream()]
    return b"".join(chunks)


@router.post(
    "/webhook",
    summary="Receive Stripe webhook events",
    description="""
Endpoint for Stripe webhook events. Handles:
- checkout.session.completed: emails the download link to the customer, then a sale alert to the operator

Every other event type is acknowledged without action.

**No authentication required** - signature is verified using the Stripe webhook secret.

**Not idempotent**: a redelivered event sends the emails again.
""",
    response_model=WebhookResponse,
    responses={
        200: {"description": "Event received and processed (or ignored)", "model": WebhookResponse},
        400: {"description": "Invalid signature or unusable checkout session", "model": ErrorResponse},
        405: {"description": "Method not allowed"},
        500: {"description": "Email delivery failed; Stripe will retry", "model": ErrorResponse},
    },
)
async def handle_stripe_webhook(
    request: Request,
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> WebhookResponse:
    """Verify the delivery and send notifications for completed checkouts."""
    payload = await read_raw_body(request)
    signature = request.headers.get(SIGNATURE_HEADER)

    # Provider SDK calls block; keep them off the event loop
    outcome = await run_in_threadpool(handler.handle, payload, signature)

    return WebhookResponse(
        received=True,
        event_id=outcome.event_id,
        event_type=outcome.event_type,
        processing_result=outcome.processing_result,
    )
