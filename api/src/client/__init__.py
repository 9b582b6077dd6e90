"""Client-side progress reporting.

Provides:
- ProgressReporter: counts active time and flushes it periodically
- ProgressApiClient: httpx transport to the progress API
"""

from .reporter import ProgressReporter, ReporterState
from .transport import ProgressApiClient, ProgressClientError, ProgressTransport


__all__ = [
    "ProgressApiClient",
    "ProgressClientError",
    "ProgressReporter",
    "ProgressTransport",
    "ReporterState",
]
