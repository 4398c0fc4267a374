"""
REST API for the Airdrop Research Agent using FastAPI.

Endpoints
---------
GET  /health                              - Service + research agent health
POST /api/research-airdrops               - Airdrop research for a wallet
POST /api/check-eligibility               - Eligibility for one protocol
POST /api/claim-airdrop                   - Simulated claim receipt
GET  /api/claim-history/{wallet_address}  - Claim history for a wallet

Research and eligibility always answer 200 with real or synthetic data;
only bad client input is reported (400, including body validation).
Internal error details are never sent to clients.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import sentry_sdk
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from config import (
    API_HOST,
    API_PORT,
    CORS_ORIGINS,
    HEALTH_TIMEOUT_SECONDS,
    SENTIENT_API_URL,
    SENTRY_DSN,
    SENTRY_ENVIRONMENT,
    SENTRY_TRACES_SAMPLE_RATE,
    SERVICE_NAME,
)
from .exceptions import ClientInputError
from .logging_config import bind_wallet, generate_request_id, request_id_ctx, setup_logging
from .models import (
    ClaimHistory,
    ClaimReceipt,
    ClaimRequest,
    EligibilityRequest,
    EligibilityResult,
    HealthReport,
    ResearchRequest,
    ResearchResult,
)
from .services import Services, build_services

setup_logging()
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Sentry – initialise before anything else so startup errors are captured
# ---------------------------------------------------------------------------
if SENTRY_DSN:
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment=SENTRY_ENVIRONMENT,
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        send_default_pii=False,
        # Don't capture 4xx client errors as Sentry events
        before_send=lambda event, hint: (
            None
            if (hint.get("exc_info") and
                isinstance(hint["exc_info"][1], (HTTPException, ClientInputError)) and
                getattr(hint["exc_info"][1], "status_code", 400) < 500)
            else event
        ),
    )
    logger.info("Sentry initialised (env=%s)", SENTRY_ENVIRONMENT)
else:
    logger.info("SENTRY_DSN not set – error tracking disabled")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach a unique request ID to every request for tracing."""

    async def dispatch(self, request: Request, call_next):
        rid = generate_request_id()
        request_id_ctx.set(rid)
        bind_wallet(None)
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = rid
        logger.info(
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response


def _describe_validation(exc: RequestValidationError) -> str:
    """Flatten FastAPI validation errors into one client-facing message."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg', 'invalid')}" if loc else err.get("msg", "invalid"))
    return "Invalid request: " + "; ".join(parts)


def _services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services are not initialised; run the app through its lifespan")
    return services


def create_app(services: Optional[Services] = None) -> FastAPI:
    """Create the API app.

    When *services* is given it is used as-is and left open on shutdown;
    otherwise the lifespan builds one from ``config`` and closes it.
    """

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        owned = getattr(application.state, "services", None) is None
        if owned:
            if not SENTIENT_API_URL.startswith("http"):
                raise RuntimeError("Invalid SENTIENT_API_URL – must be an HTTP(S) URL")
            logger.info("Starting up – building services …")
            application.state.services = build_services()
        yield
        if owned:
            logger.info("Shutting down – closing research agent client …")
            await application.state.services.close()
            application.state.services = None

    application = FastAPI(
        title="Airdrop Research Agent API",
        description="Airdrop research for wallets via an AI research agent, with demo fallback.",
        version="1.0.0",
        lifespan=lifespan,
    )
    application.state.services = services
    application.state.started_at = time.monotonic()

    application.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials="*" not in CORS_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Accept"],
    )
    application.add_middleware(RequestIdMiddleware)

    @application.exception_handler(ClientInputError)
    async def _client_input_error(request: Request, exc: ClientInputError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": exc.message})

    @application.exception_handler(RequestValidationError)
    async def _request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": _describe_validation(exc)})

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    @application.get("/", tags=["system"], include_in_schema=False)
    async def root():
        """Redirect to Swagger UI."""
        return RedirectResponse(url="/docs")

    @application.get("/health", response_model=HealthReport, tags=["system"])
    async def health(request: Request) -> HealthReport:
        """Service health; degraded when the research agent is unreachable."""
        services = _services(request)
        connected = await services.agent_client.health(timeout=HEALTH_TIMEOUT_SECONDS)
        return HealthReport(
            status="healthy" if connected else "degraded",
            timestamp=datetime.now(tz=timezone.utc).isoformat(),
            service=SERVICE_NAME,
            sentient_api="connected" if connected else "disconnected",
            cache_size=len(services.cache),
            uptime_seconds=round(time.monotonic() - request.app.state.started_at, 1),
            circuit_breaker=(
                services.agent_client.circuit_breaker.status()
                if services.agent_client.circuit_breaker
                else {}
            ),
            warning=None if connected else "Using fallback mode",
        )

    @application.post(
        "/api/research-airdrops",
        response_model=ResearchResult,
        tags=["research"],
    )
    async def research_airdrops(
        request: Request, body: Optional[ResearchRequest] = None
    ) -> ResearchResult:
        """Research airdrop opportunities for a wallet (cached for a few minutes)."""
        if body is None:
            body = ResearchRequest()
        bind_wallet(body.wallet_address)
        return await _services(request).orchestrator.research(body)

    @application.post(
        "/api/check-eligibility",
        response_model=EligibilityResult,
        tags=["research"],
    )
    async def check_eligibility(
        request: Request, body: Optional[EligibilityRequest] = None
    ) -> EligibilityResult:
        """Check a wallet's eligibility for one protocol's airdrop."""
        if body is None:
            body = EligibilityRequest()
        bind_wallet(body.wallet_address)
        return await _services(request).eligibility.check(body.wallet_address, body.protocol)

    @application.post(
        "/api/claim-airdrop",
        response_model=ClaimReceipt,
        tags=["claims"],
    )
    async def claim_airdrop(
        request: Request, body: Optional[ClaimRequest] = None
    ) -> ClaimReceipt:
        """Simulate claiming an airdrop – no transaction is sent."""
        if body is None:
            body = ClaimRequest()
        bind_wallet(body.wallet_address)
        try:
            return _services(request).claims.claim(
                body.wallet_address, body.airdrop_id, body.claim_amount
            )
        except ClientInputError:
            raise
        except Exception as exc:
            logger.exception("Claim failed for %s", body.wallet_address)
            raise HTTPException(status_code=500, detail="Internal server error") from exc

    @application.get(
        "/api/claim-history/{wallet_address}",
        response_model=ClaimHistory,
        tags=["claims"],
    )
    async def claim_history(request: Request, wallet_address: str) -> ClaimHistory:
        """Claims recorded for a wallet."""
        bind_wallet(wallet_address)
        try:
            return _services(request).claims.history(wallet_address)
        except Exception as exc:
            logger.exception("Claim history failed for %s", wallet_address)
            raise HTTPException(status_code=500, detail="Internal server error") from exc

    return application


app = create_app()


# ------------------------------------------------------------------
# Run with: python -m airdrop_agent.api
# ------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "airdrop_agent.api:app",
        host=API_HOST,
        port=API_PORT,
    )
