from .scenario_dispatcher import ScenarioDispatcher as ScenarioDispatcher
from .scenario_runner import (
    ScenarioKeys as ScenarioKeys,
    ScenarioRunner as ScenarioRunner,
)
from .scenario_type import (
    ALL_SCENARIOS as ALL_SCENARIOS,
    ENABLED_SCENARIOS as ENABLED_SCENARIOS,
    KNOWN_ISSUE_SCENARIOS as KNOWN_ISSUE_SCENARIOS,
    ScenarioType as ScenarioType,
    enabled_scenarios as enabled_scenarios,
    select_scenario as select_scenario,
)
