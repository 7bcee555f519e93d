# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/simplepush-python/LICENSE
# ==============================================================================

"""Opaque identifiers for sessions (UAIDs) and channels."""

from __future__ import annotations

from collections.abc import Callable
import uuid


IdFactory = Callable[[], str]


def new_uaid() -> str:
    """Return a random UUID4 string, used for both UAIDs and channel ids."""
    return str(uuid.uuid4())


__all__ = ["IdFactory", "new_uaid"]
