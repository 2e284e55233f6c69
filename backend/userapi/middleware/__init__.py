"""Route-level middleware hooks."""
from userapi.middleware.chain import middleware_route
from userapi.middleware.request_logging import log_request

__all__ = ["middleware_route", "log_request"]
