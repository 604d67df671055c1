"""Typer that accepts ``async def`` commands and callbacks."""

from __future__ import annotations

import asyncio
import functools
import inspect
from collections.abc import Callable
from typing import Any

import typer


def run_sync(f: Callable[..., Any]) -> Callable[..., Any]:
    """Give coroutine function ``f`` a synchronous face for click.

    Every invocation gets a fresh event loop via ``asyncio.run``. The
    wrapper keeps ``f``'s signature so typer still sees the parameters.
    """
    if not inspect.iscoroutinefunction(f):
        return f

    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return asyncio.run(f(*args, **kwargs))

    return wrapper


class ATyper(typer.Typer):
    """Typer subclass whose commands and callbacks may be ``async def``."""

    def command(self, *args: Any, **kwargs: Any) -> Callable[[Callable], Callable]:  # type: ignore[override]
        register = super().command(*args, **kwargs)

        def decorator(f: Callable) -> Callable:
            register(run_sync(f))
            return f

        return decorator

    def callback(self, *args: Any, **kwargs: Any) -> Callable[[Callable], Callable]:  # type: ignore[override]
        register = super().callback(*args, **kwargs)

        def decorator(f: Callable) -> Callable:
            register(run_sync(f))
            return f

        return decorator
