"""FastAPI application factory"""

from fastapi import APIRouter, FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from contract_ledger.api.errors import register_exception_handlers
from contract_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from contract_ledger.api.v1 import contracts, payments, transfers
from contract_ledger.infrastructure.observability.logging import setup_logging
from contract_ledger.config import Settings, settings

API_VERSION = "0.1.0"

V1_ROUTERS = (
    (contracts.router, "contracts"),
    (payments.router, "payments"),
    (transfers.router, "transfers"),
)

setup_logging(settings.log_level, settings.service_name)


def _ops_router(service_settings: Settings) -> APIRouter:
    """Liveness and Prometheus exposition, outside the versioned API"""
    router = APIRouter(include_in_schema=False)

    @router.get("/health")
    def health_check():
        return {"status": "ok", "service": service_settings.service_name}

    @router.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return router


def create_app(service_settings: Settings = settings) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Contract Ledger Service",
        description=(
            "Contracts to sell created from approved reservations, their downpayment "
            "installment ledger, payment revert, void and ownership transfer."
        ),
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = service_settings

    # Last added runs first: the request id exists before metrics log it
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(_ops_router(service_settings))
    for router, tag in V1_ROUTERS:
        app.include_router(router, prefix="/v1", tags=[tag])

    return app


app = create_app()
