from .client import RangeServiceClient as RangeServiceClient
from .in_memory import (
    InMemoryRangeService as InMemoryRangeService,
    InMemoryServiceConfig as InMemoryServiceConfig,
    InMemoryTransaction as InMemoryTransaction,
    Registration as Registration,
    RegistrationState as RegistrationState,
)
from .range_service import (
    INVALID_VERSION as INVALID_VERSION,
    ExternalRangeService as ExternalRangeService,
    RangeTransaction as RangeTransaction,
)
from .transaction import run_transactional as run_transactional
