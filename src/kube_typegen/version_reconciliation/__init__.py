"""Version reconciliation exports."""

from .api_versions import ApiVersion, Stability, sort_version_labels
from .version_reconciler import ReconciledSchema, reconcile_versions

__all__ = [
    "ApiVersion",
    "Stability",
    "sort_version_labels",
    "ReconciledSchema",
    "reconcile_versions",
]
