"""Network isolation state."""

from __future__ import annotations

from enum import StrEnum


class NetworkState(StrEnum):
    """``ghost`` is the isolated state: no outbound traffic, links down."""

    ONLINE = "online"
    GHOST = "ghost"
