"""On-disk context registry.

Every mutation reloads the registry, applies the change and rewrites the
whole file through a temporary sibling that is renamed into place, so a
reader never observes a partially written registry. Two processes editing
contexts at the same time are not detected: the last writer wins.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, List, Tuple

import yaml

from ..exceptions import ValidationError
from .models import ContextRegistry, Target

__all__ = ["ContextStore"]

logger = logging.getLogger(__name__)


class ContextStore:
    """Persists named targets and the active selection in a YAML file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    def load(self) -> ContextRegistry:
        if not self.path.exists():
            return ContextRegistry()
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ValidationError(f"failed to read registry {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ValidationError(
                f"invalid registry format (expected mapping): {self.path}"
            )
        return ContextRegistry.from_dict(data)

    def get_active(self) -> Target:
        return self.load().active()

    def list_all(self) -> Tuple[List[Target], str]:
        registry = self.load()
        return registry.ordered(), registry.active_name

    def view(self) -> ContextRegistry:
        return self.load()

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #
    def set_target(self, target: Target) -> Target:
        target.validate()
        self._mutate(lambda registry: registry.upsert(target))
        logger.info("context_saved name=%s cluster=%s", target.name, target.cluster_id)
        return target

    def use(self, name: str) -> None:
        self._mutate(lambda registry: registry.activate(name))
        logger.info("context_selected name=%s", name)

    def delete(self, name: str) -> None:
        self._mutate(lambda registry: registry.remove(name))
        logger.info("context_deleted name=%s", name)

    def _mutate(self, change: Callable[[ContextRegistry], None]) -> ContextRegistry:
        registry = self.load()
        change(registry)
        self._write(registry)
        return registry

    def _write(self, registry: ContextRegistry) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # One temp file per write; concurrent writers never share it.
        fd, temp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=self.path.name + ".", suffix=".tmp"
        )
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                yaml.safe_dump(registry.to_dict(), handle, sort_keys=False)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_path, self.path)
        except OSError:
            temp_path.unlink(missing_ok=True)
            raise
