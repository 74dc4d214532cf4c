from .endpoints import ApiEndpoints, get_api_endpoints
from .http import (
    ApiResponse,
    AuthorizedHttpClient,
    RequestTimeoutError,
    TransportError,
    request_json,
)
from .settings import ApiSettings, get_api_settings

__all__ = [
    "ApiEndpoints",
    "ApiResponse",
    "ApiSettings",
    "AuthorizedHttpClient",
    "RequestTimeoutError",
    "TransportError",
    "get_api_endpoints",
    "get_api_settings",
    "request_json",
]
