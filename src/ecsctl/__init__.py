"""ecsctl public API surface.

Only the entry points listed here are considered stable; everything else
is internal and may change.
"""

from .collector import PaginatedCollector, collect_resources
from .contexts import ContextRegistry, ContextStore, Target
from .logs import LogTailStream
from .session import SessionBridge
from .version import __version__

__all__ = [
    "ContextRegistry",
    "ContextStore",
    "LogTailStream",
    "PaginatedCollector",
    "SessionBridge",
    "Target",
    "collect_resources",
    "__version__",
]
