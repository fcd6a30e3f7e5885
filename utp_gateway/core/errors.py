from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette import status

logger = logging.getLogger("utp_gateway.errors")


# Domain exceptions -------------------------------------------------------


class GatewayError(Exception):
    """Base class for domain errors carrying a stable error code."""

    error_code = "UTP_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(GatewayError):
    error_code = "UTP_VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidAssetError(ValidationError):
    error_code = "INVALID_ASSET"


class SameAssetError(ValidationError):
    error_code = "SAME_ASSET"


class InvalidAmountError(ValidationError):
    error_code = "INVALID_AMOUNT"


class UnknownMethodError(ValidationError):
    error_code = "UNKNOWN_SETTLEMENT_METHOD"


class AmountOutOfRangeError(ValidationError):
    error_code = "AMOUNT_OUT_OF_RANGE"


class UnsupportedCurrencyError(ValidationError):
    error_code = "UNSUPPORTED_CURRENCY"


class NotFoundError(GatewayError):
    error_code = "UTP_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class SettlementNotFoundError(NotFoundError):
    error_code = "SETTLEMENT_NOT_FOUND"


class ConversionNotFoundError(NotFoundError):
    error_code = "CONVERSION_NOT_FOUND"


class InvalidTransitionError(GatewayError):
    error_code = "INVALID_STATE_TRANSITION"
    status_code = status.HTTP_409_CONFLICT


class UpstreamUnavailable(GatewayError):
    error_code = "UPSTREAM_UNAVAILABLE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class PriceFetchError(UpstreamUnavailable):
    error_code = "PRICE_SOURCE_UNAVAILABLE"


class ExecutionFailure(GatewayError):
    error_code = "SETTLEMENT_EXECUTION_FAILURE"
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        settlement_id: Optional[str] = None,
    ):
        super().__init__(message, field=field)
        self.settlement_id = settlement_id


class ApiError(Exception):
    """Error raised by routers with the route's public error code."""

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        field: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.field = field
        self.extra = extra or {}

    @classmethod
    def from_domain(cls, exc: GatewayError, error_code: str) -> "ApiError":
        """Wrap a domain error, keeping its HTTP status but using the route code."""
        extra: Dict[str, Any] = {}
        if isinstance(exc, ExecutionFailure) and exc.settlement_id:
            extra = {"settlement_id": exc.settlement_id, "status": "failed"}
        return cls(exc.status_code, error_code, exc.message, field=exc.field, extra=extra)


def with_error_code(error_code: str):
    """Tag a route so request validation failures report `error_code` (400)."""

    def decorate(endpoint):
        endpoint.route_error_code = error_code
        return endpoint

    return decorate


# Handlers ----------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def error_body(
    message: str, error_code: str, field: Optional[str] = None, **extra: Any
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "success": False,
        "error": message,
        "error_code": error_code,
        "timestamp": _now_iso(),
    }
    if field:
        body["field"] = field
    body.update(extra)
    return body


def api_error_handler(request: Request, exc: ApiError):  # type: ignore
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.error_code, exc.field, **exc.extra),
    )


def gateway_error_handler(request: Request, exc: GatewayError):  # type: ignore
    if exc.status_code >= 500:
        logger.error("domain error escaped route: %s", exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.error_code, exc.field),
    )


def http_error_handler(request: Request, exc):  # type: ignore
    if exc.status_code != status.HTTP_404_NOT_FOUND:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail), f"UTP_{exc.status_code}"),
        )
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=error_body(
            f"No route for {request.method} {request.url.path}",
            "UTP_404",
            path=request.url.path,
            method=request.method,
        ),
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    # Routes tagged with route_error_code keep their own code for bad bodies
    route = request.scope.get("route")
    endpoint = getattr(route, "endpoint", None) or request.scope.get("endpoint")
    error_code = getattr(endpoint, "route_error_code", None)
    if error_code:
        status_code = status.HTTP_400_BAD_REQUEST
        message = _first_error_message(exc)
    else:
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        error_code = "REQUEST_VALIDATION_FAILED"
        message = "Validation failed"
    return JSONResponse(
        status_code=status_code,
        content=error_body(
            message,
            error_code,
            _first_error_field(exc),
            details=jsonable_encoder(exc.errors()),
        ),
    )


def _first_error_field(exc: RequestValidationError) -> Optional[str]:
    errors = exc.errors()
    if not errors:
        return None
    # Drop the leading 'body' / 'query' / 'path' segment
    loc = [str(part) for part in errors[0].get("loc", ())[1:]]
    return ".".join(loc) or None


def _first_error_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    return errors[0].get("msg", "Validation failed") if errors else "Validation failed"


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", "INTERNAL_ERROR"),
    )
