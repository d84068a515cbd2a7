"""Context registry models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from ..exceptions import NoActiveContextError, NotFoundError, ValidationError

__all__ = ["ContextRegistry", "Target", "DEFAULT_PROFILE", "DEFAULT_REGION"]

DEFAULT_PROFILE = "default"
DEFAULT_REGION = "us-east-1"


@dataclass(frozen=True, slots=True)
class Target:
    """Coordinates needed to reach one cluster."""

    name: str
    cluster_id: str
    credential_profile: str = DEFAULT_PROFILE
    region: str = DEFAULT_REGION

    def validate(self) -> "Target":
        if not (self.name or "").strip():
            raise ValidationError("context name cannot be empty")
        if not (self.cluster_id or "").strip():
            raise ValidationError("cluster name cannot be empty")
        return self

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "cluster": self.cluster_id,
            "profile": self.credential_profile,
            "region": self.region,
        }

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> "Target":
        return cls(
            name=name,
            cluster_id=str(data.get("cluster") or ""),
            credential_profile=str(data.get("profile") or DEFAULT_PROFILE),
            region=str(data.get("region") or DEFAULT_REGION),
        )


@dataclass
class ContextRegistry:
    """Named targets plus the name of the active one.

    ``targets`` keeps insertion order; replacing an existing target keeps
    its position.
    """

    targets: Dict[str, Target] = field(default_factory=dict)
    active_name: str = ""

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #
    def active(self) -> Target:
        if not self.active_name:
            raise NoActiveContextError()
        try:
            return self.targets[self.active_name]
        except KeyError:
            raise NotFoundError(
                f"current context '{self.active_name}' not found"
            ) from None

    def ordered(self) -> List[Target]:
        return list(self.targets.values())

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #
    def upsert(self, target: Target) -> None:
        target.validate()
        self.targets[target.name] = target
        self.active_name = target.name

    def activate(self, name: str) -> None:
        self._require(name)
        self.active_name = name

    def remove(self, name: str) -> None:
        self._require(name)
        del self.targets[name]
        if self.active_name == name:
            self.active_name = ""

    def _require(self, name: str) -> None:
        if name not in self.targets:
            raise NotFoundError(f"context '{name}' not found")

    # ------------------------------------------------------------------ #
    # Serialization
    # ------------------------------------------------------------------ #
    def to_dict(self) -> Dict[str, Any]:
        return {
            "current-context": self.active_name,
            "contexts": {name: t.to_dict() for name, t in self.targets.items()},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContextRegistry":
        contexts = data.get("contexts") or {}
        if not isinstance(contexts, Mapping):
            raise ValidationError("invalid registry format: 'contexts' must be a mapping")
        targets: Dict[str, Target] = {}
        for name, raw in contexts.items():
            if not isinstance(raw, Mapping):
                raise ValidationError(f"invalid registry entry for context '{name}'")
            targets[str(name)] = Target.from_dict(str(name), raw)
        return cls(targets=targets, active_name=str(data.get("current-context") or ""))
