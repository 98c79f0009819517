"""FastAPI application for the checkout relay.

Exposes:
- POST /api/webhook: Stripe checkout webhook
- GET /api/ping: health check

Deployed to AWS Lambda through Mangum (`handler`); run locally with
`relay-api` (uvicorn).
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from mangum import Mangum

from relay import __version__
from relay.utils.logging import configure_logging, get_logger
from relay_api.exceptions import register_exception_handlers
from relay_api.middleware.correlation import CorrelationIdMiddleware
from relay_api.routes.webhooks import router as webhooks_router

configure_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="Checkout Relay",
    description="Verifies Stripe checkout webhooks and sends sale notifications",
    version=__version__,
)

app.add_middleware(CorrelationIdMiddleware)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

app.include_router(webhooks_router, prefix="/api")


@app.get("/api/ping")
async def ping() -> dict[str, Any]:
    """Health check endpoint at /api/ping."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "checkout-relay",
    }


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = False) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: False)
    """
    import uvicorn

    logger.info("Starting Checkout Relay %s on %s:%d (reload=%s)", __version__, host, port, reload)

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run("relay_api.main:app", host=host, port=port, reload=True)
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
