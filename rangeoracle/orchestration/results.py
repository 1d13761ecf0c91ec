from collections import Counter
from dataclasses import dataclass, field
from enum import Enum


class OracleResult(Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"


@dataclass(slots=True)
class OracleOutcome:
    seed: int
    result: OracleResult
    duration_seconds: float = 0.0
    error: str | None = None
    ranges_registered: int = 0
    ranges_unregistered: int = 0
    ranges_force_purged: int = 0
    ranges_checked: int = 0
    scenarios_completed: Counter = field(default_factory=Counter)

    @property
    def passed(self) -> bool:
        return self.result == OracleResult.PASSED

    def summary(self) -> str:
        scenarios = ", ".join(
            f"{scenario.name}={count}"
            for scenario, count in sorted(
                self.scenarios_completed.items(),
                key=lambda item: item[0].name,
            )
        )

        summary = (
            f"{self.result.value} in {self.duration_seconds:.2f}s (seed {self.seed}): "
            f"registered={self.ranges_registered} "
            f"unregistered={self.ranges_unregistered} "
            f"force_purged={self.ranges_force_purged} "
            f"checked={self.ranges_checked} "
            f"scenarios=[{scenarios}]"
        )

        if self.error:
            summary = f"{summary} error: {self.error}"

        return summary
