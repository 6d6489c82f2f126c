"""Kubernetes API version labels and their priority."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

_VERSION_PATTERN = re.compile(r"^v(\d+)(?:(alpha|beta)(\d*))?$")


class Stability(str, Enum):
    """Maturity level encoded in a version label."""

    GA = "ga"
    BETA = "beta"
    ALPHA = "alpha"
    OTHER = "other"


_STABILITY_RANK = {
    Stability.GA: 0,
    Stability.BETA: 1,
    Stability.ALPHA: 2,
    Stability.OTHER: 3,
}


@dataclass(frozen=True)
class ApiVersion:
    """Parsed version label such as `v1`, `v2beta1` or `v1alpha`."""

    label: str
    stability: Stability
    major: int = 0
    minor: int | None = None

    @classmethod
    def parse(cls, label: str) -> ApiVersion:
        match = _VERSION_PATTERN.match(label)
        if match is None:
            return cls(label=label, stability=Stability.OTHER)
        major, level, minor = match.groups()
        if level is None:
            return cls(label=label, stability=Stability.GA, major=int(major))
        return cls(
            label=label,
            stability=Stability(level),
            major=int(major),
            minor=int(minor) if minor else None,
        )

    def priority_key(self) -> tuple[int, int, int, int, str]:
        """Sort key that puts the highest-priority version first.

        GA before beta before alpha before anything else; within a level the
        higher major wins, then a present minor beats a missing one and the
        higher minor wins. Unrecognized labels sort lexically.
        """
        if self.stability is Stability.OTHER:
            return (_STABILITY_RANK[self.stability], 0, 0, 0, self.label)
        has_minor = 0 if self.minor is not None else 1
        return (
            _STABILITY_RANK[self.stability],
            -self.major,
            has_minor,
            -(self.minor or 0),
            self.label,
        )


def sort_version_labels(labels: Iterable[str]) -> list[str]:
    """Return labels ordered from highest to lowest priority."""
    return sorted(labels, key=lambda label: ApiVersion.parse(label).priority_key())
