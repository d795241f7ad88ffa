"""FastAPI application serving ERC-20 token details."""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException

from token_api.config import get_settings
from token_api.erc20 import TokenReader, get_token_reader
from token_api.exceptions import ContractCallFailedError, TokenApiError, UnexpectedFailureError
from token_api.models import ErrorResponse, HealthResponse, SuccessResponse, TokenDetailsData
from token_api.ratelimit import SECURITY_HEADERS, THROTTLE_MESSAGE, FixedWindowRateLimiter
from token_api.service import fetch_token_details

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Prometheus metrics
REQUEST_COUNT = Counter(
    'token_api_requests_total',
    'Total requests',
    ['method', 'endpoint', 'status']
)
REQUEST_LATENCY = Histogram(
    'token_api_request_latency_seconds',
    'Request latency',
    ['endpoint']
)
RPC_FAILURES = Counter(
    'token_api_rpc_failures_total',
    'Token detail lookups that failed upstream',
    ['kind']
)
RATE_LIMITED = Counter(
    'token_api_rate_limited_total',
    'Requests rejected by the rate limiter'
)

# Paths that bypass the rate limiter
UNTHROTTLED_PATHS = {"/metrics", "/health"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Token Details API...")
    logger.info(f"RPC URL: {settings.rpc_url}")
    logger.info(
        f"Rate limit: {settings.rate_limit_max} requests per "
        f"{settings.rate_limit_window_seconds}s per client"
    )
    yield

    # Shutdown
    logger.info("Shutting down...")
    if get_token_reader.cache_info().currsize:
        await get_token_reader().close()
        get_token_reader.cache_clear()
    logger.info("Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Token Details API",
    description="API for reading ERC-20 token metadata from an EVM node",
    version="1.0.0",
    lifespan=lifespan
)

app.state.rate_limiter = FixedWindowRateLimiter(
    limit=settings.rate_limit_max,
    window=settings.rate_limit_window_seconds,
    max_clients=settings.rate_limit_max_clients,
)


def error_response(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump(),
        headers=headers,
    )


# Middleware registered later wraps middleware registered earlier, so the
# order below runs security headers outermost and the error guard innermost.

@app.middleware("http")
async def unhandled_error_middleware(request: Request, call_next):
    """Turn uncaught exceptions into a 500 envelope the outer middleware can decorate."""
    try:
        return await call_next(request)
    except Exception as e:
        logger.exception(f"Unhandled error on {request.url.path}: {e}")
        return error_response(500, UnexpectedFailureError.message)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Middleware to track request metrics."""
    start_time = time.time()
    response = await call_next(request)

    # Record metrics (skip /metrics endpoint to avoid recursion)
    if request.url.path != "/metrics":
        latency = time.time() - start_time
        # Route template keeps label cardinality bounded
        route = request.scope.get("route")
        endpoint = route.path if route is not None else "unmatched"
        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code
        ).inc()
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(latency)

    return response


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    """Reject clients that exceed their fixed-window request budget."""
    if request.url.path in UNTHROTTLED_PATHS:
        return await call_next(request)

    client_key = request.client.host if request.client else "unknown"
    decision = request.app.state.rate_limiter.hit(client_key)
    headers = {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(decision.reset_after),
    }

    if not decision.allowed:
        RATE_LIMITED.inc()
        logger.warning(f"Rate limit exceeded for {client_key} on {request.url.path}")
        headers["Retry-After"] = str(decision.reset_after)
        return error_response(429, THROTTLE_MESSAGE, headers=headers)

    response = await call_next(request)
    response.headers.update(headers)
    return response


# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    """Attach hardening headers to every response."""
    response = await call_next(request)
    response.headers.update(SECURITY_HEADERS)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render framework errors (404, 405, ...) in the API's error envelope."""
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.get(
    "/token-details",
    response_model=SuccessResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_token_details(
    contract_address: Optional[str] = Query(None, alias="contractAddress"),
    reader: TokenReader = Depends(get_token_reader),
):
    """
    Get ERC-20 metadata for a contract.

    Query Parameters:
        - contractAddress: Token contract address (0x-prefixed, 20 bytes)

    Returns:
        - name, symbol and decimals of the token
        - totalSupply: supply scaled by decimals
        - totalSupplyWithDecimal: raw integer supply
    """
    try:
        details = await fetch_token_details(reader, contract_address)
    except ContractCallFailedError as e:
        RPC_FAILURES.labels(kind="contract_call").inc()
        logger.error(f"Error fetching token details: {e.detail}")
        return error_response(e.status_code, e.message)
    except TokenApiError as e:
        return error_response(e.status_code, e.message)
    except Exception as e:
        RPC_FAILURES.labels(kind="unexpected").inc()
        logger.exception(f"Error fetching token details: {e}")
        return error_response(500, UnexpectedFailureError.message)

    return SuccessResponse(
        data=TokenDetailsData(
            name=details.name,
            symbol=details.symbol,
            decimals=str(details.decimals),
            totalSupply=details.total_supply_formatted,
            totalSupplyWithDecimal=str(details.total_supply),
        )
    )


@app.get("/health", response_model=HealthResponse, responses={503: {"model": HealthResponse}})
async def health_check(reader: TokenReader = Depends(get_token_reader)):
    """
    Health check endpoint for Kubernetes probes.

    Reports whether the configured RPC node answers.
    """
    connected = await reader.is_connected()
    if not connected:
        logger.error(f"Health check failed: RPC node at {settings.rpc_url} unreachable")
        return JSONResponse(
            status_code=503,
            content=HealthResponse(status="degraded", rpc_connected=False).model_dump(),
        )
    return HealthResponse(status="healthy", rpc_connected=True)


@app.get("/metrics")
async def prometheus_metrics():
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format for scraping.
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
