from .errors import (
    ConvergenceTimeout as ConvergenceTimeout,
    InvariantViolation as InvariantViolation,
    RangeOracleError as RangeOracleError,
    ServiceError as ServiceError,
    TransactionConflict as TransactionConflict,
)
from .models import KeyRange as KeyRange
