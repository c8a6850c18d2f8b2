"""Convert Equinox SDK bundles into Maven artifacts with inferred dependencies."""

from .models import ComponentIdentity, ComponentRecord, Dependency, RequirementKind

__version__ = "0.1.0"

__all__ = [
    "ComponentIdentity",
    "ComponentRecord",
    "Dependency",
    "RequirementKind",
    "__version__",
]
