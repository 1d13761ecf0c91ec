import random
import secrets
from dataclasses import dataclass

from rangeoracle.env import Env
from rangeoracle.scenarios.scenario_type import ScenarioType, enabled_scenarios

from rangeoracle.oracle.randomness import random_exp


@dataclass(slots=True)
class OracleSettings:
    """
    Fully resolved oracle settings.

    Options left unset in Env are derived from the seeded generator, so a
    recorded seed reproduces the same configuration.
    """

    seed: int
    test_duration: float
    ops_per_second: int
    target_ranges: int
    sequential: bool
    sequential_gap: int
    client_id: int = 0
    client_count: int = 1
    poll_interval: float = 1.0
    convergence_timeout: float | None = 300.0
    list_limit: int = 1_000_000
    check_after_mutation: bool = True
    check_inactive_ranges: bool = False
    scenario_interval: float = 1.0
    max_gap_subranges: int = 6
    enabled_scenarios: tuple[ScenarioType, ...] = enabled_scenarios()

    @property
    def runs_scenarios(self) -> bool:
        return self.client_id == 0

    @classmethod
    def from_env(cls, env: Env) -> 'OracleSettings':
        seed = env.ORACLE_SEED
        if seed is None:
            seed = secrets.randbits(63)

        rng = random.Random(seed)
        client_count = max(env.ORACLE_CLIENT_COUNT, 1)

        ops_per_second = env.ORACLE_OPS_PER_SECOND
        if ops_per_second is None:
            ops_per_second = rng.randint(1, 99)

        ops_per_second = max(ops_per_second // client_count, 1)

        # One shared draw decides the remaining randomized options, digit
        # by digit.
        shared = rng.getrandbits(63)

        target_ranges = env.ORACLE_TARGET_RANGES
        if target_ranges is None:
            target_ranges = random_exp(rng, 1, 1 + shared % 10)
            target_ranges = int(target_ranges * (0.8 + rng.random() * 0.4))
            target_ranges //= client_count

        target_ranges = max(target_ranges, 1)
        shared //= 10

        sequential = env.ORACLE_SEQUENTIAL_KEYS
        if sequential is None:
            sequential = shared % 2 == 1

        shared //= 2

        sequential_gap = env.ORACLE_SEQUENTIAL_GAP
        if sequential_gap is None:
            sequential_gap = 1 + shared % 2

        return cls(
            seed=seed,
            test_duration=env.ORACLE_TEST_DURATION,
            ops_per_second=ops_per_second,
            target_ranges=target_ranges,
            sequential=sequential,
            sequential_gap=sequential_gap,
            client_id=env.ORACLE_CLIENT_ID,
            client_count=client_count,
            poll_interval=env.ORACLE_POLL_INTERVAL,
            convergence_timeout=env.ORACLE_CONVERGENCE_TIMEOUT,
            list_limit=env.ORACLE_LIST_LIMIT,
            check_after_mutation=env.ORACLE_CHECK_AFTER_MUTATION,
            check_inactive_ranges=env.ORACLE_CHECK_INACTIVE_RANGES,
            scenario_interval=env.ORACLE_SCENARIO_INTERVAL,
            max_gap_subranges=env.ORACLE_MAX_GAP_SUBRANGES,
            enabled_scenarios=enabled_scenarios(
                include_known_issues=env.ORACLE_ENABLE_KNOWN_ISSUE_SCENARIOS,
            ),
        )
