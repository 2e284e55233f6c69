"""Per-route middleware chains.

A hook is an async callable ``(request, call_next) -> response``. Hooks are
attached to a router through its route class; the first hook listed is
the outermost, so it sees the request first and the response last.
"""
from typing import Awaitable, Callable, Type

from fastapi import Request, Response
from fastapi.routing import APIRoute

from userapi.utils.exceptions import AppException, error_response

CallNext = Callable[[Request], Awaitable[Response]]
Hook = Callable[[Request, CallNext], Awaitable[Response]]


def _render_errors(handler: CallNext) -> CallNext:
    """Turn application errors into envelopes before hooks see the response."""
    async def wrapped(request: Request) -> Response:
        try:
            return await handler(request)
        except AppException as e:
            return error_response(e)
    return wrapped


def _link(hook: Hook, call_next: CallNext) -> CallNext:
    async def wrapped(request: Request) -> Response:
        return await hook(request, call_next)
    return wrapped


def middleware_route(*hooks: Hook) -> Type[APIRoute]:
    """
    Build an APIRoute subclass that runs ``hooks`` around every endpoint.

    Args:
        *hooks: Hooks in outermost-first order

    Returns:
        Route class for ``APIRouter(route_class=...)``
    """
    class MiddlewareRoute(APIRoute):
        def get_route_handler(self) -> CallNext:
            handler = _render_errors(super().get_route_handler())
            for hook in reversed(hooks):
                handler = _link(hook, handler)
            return handler

    MiddlewareRoute.__name__ = "MiddlewareRoute[" + ",".join(h.__name__ for h in hooks) + "]"
    return MiddlewareRoute
