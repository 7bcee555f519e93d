# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/simplepush-python/LICENSE
# ==============================================================================

"""Helpers for calling listeners that may be sync or async."""

from __future__ import annotations

import inspect
from typing import Any


async def maybe_await_with_args(value: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *value* with the given arguments and await the result if needed.

    Non-callables are returned (or awaited) as-is and the arguments are ignored,
    which lets an already-created coroutine pass through unchanged.
    """
    if callable(value):
        value = value(*args, **kwargs)
    if inspect.isawaitable(value):
        return await value
    return value


__all__ = ["maybe_await_with_args"]
