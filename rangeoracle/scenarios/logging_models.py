from rangeoracle.logging.models import Entry, LogLevel


class ScenarioDebug(Entry, kw_only=True):
    """Debug-level logging for scenario steps."""
    scenario: str
    key_range: str
    level: LogLevel = LogLevel.DEBUG


class ScenarioInfo(Entry, kw_only=True):
    """Info-level logging for scenario lifecycle."""
    scenario: str
    key_range: str
    level: LogLevel = LogLevel.INFO


class ScenarioError(Entry, kw_only=True):
    """Error-level logging for failed scenarios."""
    scenario: str
    key_range: str
    level: LogLevel = LogLevel.ERROR
