from .invariant_checker import InvariantChecker as InvariantChecker
from .pacing import PoissonPacer as PoissonPacer
from .polling import poll_until as poll_until
from .randomness import (
    child_random as child_random,
    coinflip as coinflip,
    random_exp as random_exp,
)
from .range_state_tracker import RangeStateTracker as RangeStateTracker
from .workload_driver import WorkloadDriver as WorkloadDriver
