from __future__ import annotations

import logging
import socket
import time
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dashboard_api.cache.ttl_cache import TTLCache
from dashboard_api.config.settings import Settings, settings as default_settings
from dashboard_api.errors import DashboardError, InternalError, UpstreamError, UpstreamTimeoutError
from dashboard_api.internal_metrics import MetricsCollector
from dashboard_api.providers.base import MarketDataAdapter, RateAdapter
from dashboard_api.providers.coingecko_adapter import CoinGeckoAdapter
from dashboard_api.providers.exchange_rate_adapter import ExchangeRateAdapter
from dashboard_api.schemas.coin import CoinsResponse
from dashboard_api.schemas.error import ErrorResponse
from dashboard_api.schemas.rate import CurrenciesResponse, HistoryResponse, RateResponse
from dashboard_api.services.market_service import MarketService
from dashboard_api.services.rate_service import RateService
from dashboard_api.utils.currency import SUPPORTED_CURRENCIES, normalize_pair
from dashboard_api.utils.validators import (
    clamp_history_days,
    clamp_per_page,
    normalize_chart_days,
    normalize_coin_id,
    normalize_page,
    normalize_vs_currency,
)

logger = logging.getLogger(__name__)
router = APIRouter()

UNMATCHED_ROUTE = "unmatched"

FAILURE_TITLES = {
    "list_coins": "Failed to fetch coins",
    "coins_list": "Failed to fetch coins list",
    "market_chart": "Failed to fetch chart data",
    "rate": "Failed to fetch exchange rate",
    "history": "Failed to fetch historical rates",
}


def error_response(payload: ErrorResponse, status_code: int) -> JSONResponse:
    return JSONResponse(payload.model_dump(exclude_none=True), status_code=status_code)


def _route_name(request: Request) -> str | None:
    route = request.scope.get("route")
    return getattr(route, "name", None)


def _source(hit: bool) -> str:
    return "cache" if hit else "live"


def _mark_cache(response: Response, hit: bool):
    response.headers["x-cache"] = "hit" if hit else "miss"


def get_market_service(request: Request) -> MarketService:
    return request.app.state.market_service


def get_rate_service(request: Request) -> RateService:
    return request.app.state.rate_service


def get_metrics(request: Request) -> MetricsCollector:
    return request.app.state.metrics


def _install_error_handlers(app: FastAPI):
    @app.exception_handler(DashboardError)
    async def dashboard_error_handler(request: Request, exc: DashboardError):
        if isinstance(exc, UpstreamTimeoutError):
            payload = ErrorResponse(error=exc.error, message=exc.message)
        elif isinstance(exc, UpstreamError):
            payload = ErrorResponse(error=FAILURE_TITLES.get(_route_name(request), exc.error), message=exc.message)
        elif isinstance(exc, InternalError):
            logger.error(f"Internal error: {exc.message}")
            details = exc.message if request.app.state.settings.is_development else None
            payload = ErrorResponse(error=exc.error, message="An error occurred", details=details)
        else:
            payload = ErrorResponse(error=exc.error, message=exc.message)
        return error_response(payload, exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(ErrorResponse(error="Endpoint not found"), 404)
        return error_response(ErrorResponse(error="Request failed", message=str(exc.detail)), exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(_: Request, exc: RequestValidationError):
        parts = []
        for err in exc.errors():
            loc = ".".join(str(i) for i in err.get("loc", []))
            parts.append(f"{loc}: {err.get('msg', 'Invalid value')}")
        return error_response(ErrorResponse(error="Invalid request", message="; ".join(parts)), 400)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled API exception: {exc}", exc_info=True)
        details = str(exc) if request.app.state.settings.is_development else None
        return error_response(ErrorResponse(error="Internal server error", message="An error occurred", details=details), 500)


def create_app(
    settings: Settings | None = None,
    cache: TTLCache | None = None,
    market_adapter: MarketDataAdapter | None = None,
    rate_adapter: RateAdapter | None = None,
    lifespan=None,
) -> FastAPI:
    """Build the application with an explicitly owned cache and services.

    The cache lives as long as the returned app; nothing is persisted.
    """
    settings = settings or default_settings
    cache = cache if cache is not None else TTLCache()
    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

    app.state.settings = settings
    app.state.cache = cache
    app.state.metrics = MetricsCollector()
    app.state.market_service = MarketService(market_adapter or CoinGeckoAdapter.from_settings(settings), cache, settings)
    app.state.rate_service = RateService(rate_adapter or ExchangeRateAdapter.from_settings(settings), cache, settings)

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
        response = None
        start = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers["x-request-id"] = request_id
            return response
        finally:
            latency_ms = round((time.perf_counter() - start) * 1000, 2)
            route = request.scope.get("route")
            cache_flag = response.headers.get("x-cache") if response else None
            app.state.metrics.record_request(
                getattr(route, "path", UNMATCHED_ROUTE),
                success=bool(response) and response.status_code < 400,
                latency_ms=latency_ms,
                cache_hit=None if cache_flag is None else cache_flag == "hit",
            )
            logger.info(
                "request_complete",
                extra={
                    "request_id": request_id,
                    "path": request.url.path,
                    "status_code": response.status_code if response else 500,
                    "latency_ms": latency_ms,
                    "cache": cache_flag,
                },
            )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    _install_error_handlers(app)
    app.include_router(router)
    return app


@router.get("/api/health")
@router.get("/health", include_in_schema=False)
def health(metrics: MetricsCollector = Depends(get_metrics)):
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(metrics.uptime_seconds(), 3),
    }


@router.get("/api/whoami")
def whoami():
    return {"hostname": socket.gethostname(), "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/api/readiness")
def readiness(request: Request):
    return {"status": "ready", "cache": request.app.state.cache.metrics()}


@router.get("/api/metrics")
def all_metrics(metrics: MetricsCollector = Depends(get_metrics)):
    return metrics.global_metrics()


@router.get("/api/coins", response_model=CoinsResponse, name="list_coins")
def list_coins(
    response: Response,
    vs_currency: str | None = None,
    per_page: str | None = None,
    page: str | None = None,
    service: MarketService = Depends(get_market_service),
):
    clean_vs = normalize_vs_currency(vs_currency)
    clean_per_page = clamp_per_page(per_page)
    clean_page = normalize_page(page)

    coins, hit = service.get_markets(clean_vs, clean_per_page, clean_page)
    _mark_cache(response, hit)
    if hit:
        logger.info(f"Cache hit: coins:{clean_vs}:{clean_per_page}:{clean_page}")
    return CoinsResponse(data=coins, source=_source(hit))


@router.get("/api/coins/list", name="coins_list")
def coins_list(response: Response, service: MarketService = Depends(get_market_service)):
    coins, hit = service.get_coins_list()
    _mark_cache(response, hit)
    return coins


@router.get("/api/coins/{coin_id}/market_chart", name="market_chart")
def market_chart(
    coin_id: str,
    response: Response,
    vs_currency: str | None = None,
    days: str | None = None,
    service: MarketService = Depends(get_market_service),
):
    clean_id = normalize_coin_id(coin_id)
    chart, hit = service.get_market_chart(clean_id, normalize_vs_currency(vs_currency), normalize_chart_days(days))
    _mark_cache(response, hit)
    return chart


@router.get("/api/rate", response_model=RateResponse, name="rate")
def rate(
    response: Response,
    from_code: str | None = Query(None, alias="from"),
    to_code: str | None = Query(None, alias="to"),
    service: RateService = Depends(get_rate_service),
):
    clean_from, clean_to = normalize_pair(from_code, to_code)
    data, hit = service.get_rate(clean_from, clean_to)
    _mark_cache(response, hit)
    return RateResponse(
        from_=clean_from.value,
        to=clean_to.value,
        rate=data["rate"],
        timestamp=data["timestamp"],
        source=_source(hit),
    )


@router.get("/api/history", response_model=HistoryResponse, name="history")
def history(
    response: Response,
    from_code: str | None = Query(None, alias="from"),
    to_code: str | None = Query(None, alias="to"),
    days: str | None = None,
    service: RateService = Depends(get_rate_service),
):
    clean_from, clean_to = normalize_pair(from_code, to_code)
    num_days = clamp_history_days(days)
    rates, hit = service.get_history(clean_from, clean_to, num_days)
    _mark_cache(response, hit)
    return HistoryResponse(from_=clean_from.value, to=clean_to.value, days=num_days, rates=rates, source=_source(hit))


@router.get("/api/currencies", response_model=CurrenciesResponse)
def currencies():
    return CurrenciesResponse(currencies=SUPPORTED_CURRENCIES)
