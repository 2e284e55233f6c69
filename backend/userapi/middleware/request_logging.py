"""Request/response logging hook."""
from datetime import datetime

from fastapi import Request, Response

from userapi.middleware.chain import CallNext
from userapi.utils.logger import logger


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


async def log_request(request: Request, call_next: CallNext) -> Response:
    """Log the request before handling it and the status code afterwards."""
    details = {
        "method": request.method,
        "url": str(request.url),
        "ip": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
        "timestamp": _now(),
    }
    logger.info(f"API Request {details['method']} {details['url']}", extra=details)

    response = await call_next(request)

    logger.info(
        f"API Response {response.status_code}",
        extra={"status_code": response.status_code, "timestamp": _now()},
    )
    return response
