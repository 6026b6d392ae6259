"""Routers package."""

from . import (
    health,
    auth,
    research,
)
