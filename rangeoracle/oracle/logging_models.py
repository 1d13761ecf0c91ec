"""
Logging models for the oracle module.

Each model carries the context needed to tie a log line back to the
ranges being exercised:
- WorkloadDriver entries: the range operated on and the tracked counts
- InvariantChecker entries: the checked range and the expected verdict
"""

from rangeoracle.logging.models import Entry, LogLevel


# =============================================================================
# WorkloadDriver Logging Models
# =============================================================================

class WorkloadDebug(Entry, kw_only=True):
    """Debug-level logging for WorkloadDriver operations."""
    key_range: str
    active_ranges: int
    inactive_ranges: int
    level: LogLevel = LogLevel.DEBUG


class WorkloadInfo(Entry, kw_only=True):
    """Info-level logging for WorkloadDriver operations."""
    key_range: str
    active_ranges: int
    inactive_ranges: int
    level: LogLevel = LogLevel.INFO


# =============================================================================
# InvariantChecker Logging Models
# =============================================================================

class CheckerTrace(Entry, kw_only=True):
    """Trace-level logging for InvariantChecker operations."""
    key_range: str
    expected_active: bool
    level: LogLevel = LogLevel.TRACE


class CheckerDebug(Entry, kw_only=True):
    """Debug-level logging for InvariantChecker operations."""
    key_range: str
    expected_active: bool
    level: LogLevel = LogLevel.DEBUG


class CheckerError(Entry, kw_only=True):
    """Error-level logging for InvariantChecker operations."""
    key_range: str
    expected_active: bool
    level: LogLevel = LogLevel.ERROR

