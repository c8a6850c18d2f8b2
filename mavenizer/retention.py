"""Drop components that cannot take part in dependency synthesis."""

from __future__ import annotations

from typing import AbstractSet, List, Optional

from .logging import get_logger
from .models import ComponentMap, ComponentRecord

_LOGGER = get_logger("retention")


def rejection_reason(record: ComponentRecord, excluded: AbstractSet[str]) -> Optional[str]:
    """Return why ``record`` should be dropped, or ``None`` to keep it."""
    if record.symbolic_name is None:
        return "no Bundle-SymbolicName"
    if record.symbolic_name in excluded:
        return f"symbolic name {record.symbolic_name} is excluded"
    return None


def filter_components(components: ComponentMap, excluded: AbstractSet[str] = frozenset()) -> List[str]:
    """Remove unusable records from ``components`` in place and return their artifactIds."""
    dropped: List[str] = []
    for artifact_id in sorted(components):
        reason = rejection_reason(components[artifact_id], excluded)
        if reason is not None:
            dropped.append(artifact_id)
            _LOGGER.info("Ignoring bundle %s (%s)", artifact_id, reason)
    for artifact_id in dropped:
        del components[artifact_id]
    return dropped


__all__ = ["filter_components", "rejection_reason"]
