from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

# Version
try:
    __version__ = _pkg_version("zaremba")
except PackageNotFoundError:
    __version__ = "0+unknown"

# Public API re-exports
from .config import has_profile, load_settings, read_current_profile
from .divisors import DivisorResult, compute_divisor_sum, zaremba_ratio
from .records import RecordEvent, RecordScanner, ScanState, scan_for_records
from .runtime import APPLY, CFG
from .workspace import workspace_dir

__all__ = [
    "APPLY",
    "CFG",
    "DivisorResult",
    "RecordEvent",
    "RecordScanner",
    "ScanState",
    "__version__",
    "compute_divisor_sum",
    "has_profile",
    "load_settings",
    "read_current_profile",
    "scan_for_records",
    "workspace_dir",
    "zaremba_ratio",
]
