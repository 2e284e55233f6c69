"""API key authentication hook."""
from fastapi import Request, Response

from userapi.middleware.chain import CallNext
from userapi.utils.exceptions import authentication_error, error_response, forbidden_error
from userapi.utils.hashing import api_keys_match

API_KEY_HEADER = "X-API-KEY"


async def check_api_key(request: Request, call_next: CallNext) -> Response:
    """
    Require the configured API key in the ``X-API-KEY`` header.

    Missing header -> 401, wrong key -> 403, otherwise the request passes
    through unchanged.
    """
    api_key = request.headers.get(API_KEY_HEADER)

    if not api_key:
        return error_response(
            authentication_error(f"API key is required. Please provide {API_KEY_HEADER} header.")
        )

    if not api_keys_match(api_key, request.app.state.settings.api_key):
        return error_response(forbidden_error("Invalid API key"))

    return await call_next(request)
