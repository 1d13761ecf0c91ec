from rangeoracle.logging.models import Entry, LogLevel


class OrchestratorInfo(Entry, kw_only=True):
    """Info-level logging for Orchestrator phases."""
    client_id: int
    seed: int
    active_ranges: int
    inactive_ranges: int
    level: LogLevel = LogLevel.INFO


class OrchestratorError(Entry, kw_only=True):
    """Error-level logging for Orchestrator phases."""
    client_id: int
    seed: int
    active_ranges: int
    inactive_ranges: int
    level: LogLevel = LogLevel.ERROR
