"""Per-invocation wiring: effective config, logging and the bound control plane."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from ..config import load_config
from ..contexts import ContextStore, Target
from ..remote.api import ControlPlaneAPI
from ..utils.log_rotation import cleanup_old_logs
from ..utils.structured_logging import setup_structured_logging

__all__ = ["Runtime", "load_runtime", "setup_logging"]

logger = logging.getLogger(__name__)

ApiFactory = Callable[[Target], ControlPlaneAPI]


def _ecs_control_plane(target: Target) -> ControlPlaneAPI:
    from ..remote.ecs import EcsControlPlane

    return EcsControlPlane(target)


@dataclass
class Runtime:
    config: Dict[str, Any]
    store: ContextStore
    api_factory: ApiFactory = field(default=_ecs_control_plane)

    def target(self) -> Target:
        return self.store.get_active()

    def control_plane(self, target: Optional[Target] = None) -> ControlPlaneAPI:
        target = target or self.target()
        logger.debug(
            "control_plane context=%s cluster=%s region=%s",
            target.name,
            target.cluster_id,
            target.region,
        )
        return self.api_factory(target)

    @property
    def relay_executable(self) -> str:
        return self.config["relay"]["executable"]


def setup_logging(config: Dict[str, Any], args: argparse.Namespace) -> None:
    logging_cfg = config.get("logging", {})
    logs_dir = config["logs_dir"]
    setup_structured_logging(
        logs_dir,
        debug=bool(getattr(args, "debug", False)),
        quiet=bool(getattr(args, "quiet", False)),
        level=logging_cfg.get("level", "INFO"),
        redaction_patterns=(logging_cfg.get("redaction") or {}).get("custom_patterns"),
    )
    removed = cleanup_old_logs(logs_dir, int(logging_cfg.get("retention_days", 7)))
    if removed:
        logger.info("log_cleanup removed=%d", removed)


def load_runtime(args: argparse.Namespace) -> Runtime:
    """Resolve configuration for this invocation and configure logging."""
    config = load_config({"registry_path": getattr(args, "registry", None)})
    setup_logging(config, args)
    return Runtime(config=config, store=ContextStore(config["registry_path"]))
