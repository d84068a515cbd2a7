"""Named connection profiles and the active selection."""

from .models import DEFAULT_PROFILE, DEFAULT_REGION, ContextRegistry, Target
from .store import ContextStore

__all__ = [
    "DEFAULT_PROFILE",
    "DEFAULT_REGION",
    "ContextRegistry",
    "ContextStore",
    "Target",
]
