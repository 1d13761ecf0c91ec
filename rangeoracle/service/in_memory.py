"""
In-memory reference implementation of the range activation service.

Implements the alignment contract the oracle checks so the oracle can run
end to end without a real cluster:

- activation succeeds for an exact re-registration or a range overlapping
  no registration, and fails for any other overlap
- deactivation succeeds when the range overlaps nothing, or when its
  boundaries coincide with registered boundaries and it cuts no
  registration
- a force purge leaves registrations in place (for alignment) but makes
  them inactive; a plain purge changes no activation state

Eventual consistency is simulated with a convergence lag: after a change,
``is_active`` keeps reporting the previous verdict for the changed range
until the lag elapses. Transactional granule reads can be made to conflict
at a configurable rate.
"""

import asyncio
import random
import time
from dataclasses import dataclass, field
from enum import Enum

from rangeoracle.errors import ServiceError, TransactionConflict
from rangeoracle.models import KeyRange, RangeSet, sort_ranges

from .range_service import INVALID_VERSION


class RegistrationState(Enum):
    ACTIVE = "ACTIVE"
    FORCE_PURGED = "FORCE_PURGED"


@dataclass(slots=True)
class Registration:
    key_range: KeyRange
    state: RegistrationState
    granules: list[KeyRange]


@dataclass(slots=True)
class PurgeRecord:
    key_range: KeyRange
    force: bool


@dataclass(slots=True)
class InMemoryServiceConfig:
    # Seconds is_active keeps reporting a range's previous verdict
    convergence_lag: float = 0.0
    # Probability that a transactional granule read raises a conflict
    conflict_rate: float = 0.0
    split_granules: bool = True
    conflict_backoff: float = 0.01
    max_conflict_backoff: float = 1.0
    granule_split_suffix: bytes = field(default=b"\x80")


class InMemoryTransaction:

    def __init__(self, service: 'InMemoryRangeService') -> None:
        self._service = service
        self.attempts = 0

    async def get_granule_ranges(
        self,
        key_range: KeyRange,
        limit: int,
    ) -> list[KeyRange]:
        await asyncio.sleep(0)

        if self._service.should_conflict():
            self._service.conflicts += 1
            raise TransactionConflict(
                f"Conflict reading granules for {key_range}"
            )

        return self._service.granules_for(key_range)[:limit]

    async def on_error(self, error: Exception) -> None:
        if not isinstance(error, TransactionConflict):
            raise error

        config = self._service.config
        delay = min(
            config.conflict_backoff * (2 ** self.attempts),
            config.max_conflict_backoff,
        )
        self.attempts += 1

        await asyncio.sleep(delay)


class InMemoryRangeService:

    def __init__(
        self,
        config: InMemoryServiceConfig | None = None,
        seed: int | None = None,
    ) -> None:
        if config is None:
            config = InMemoryServiceConfig()

        self.config = config
        self.conflicts = 0

        self._random = random.Random(seed)
        self._registrations: dict[KeyRange, Registration] = {}
        self._registered = RangeSet()
        self._purges: dict[bytes, PurgeRecord] = {}
        self._version = 1

        # Ranges whose is_active verdict has not settled yet, mapped to the
        # verdict to report and the monotonic time it stops being reported.
        self._settling: dict[KeyRange, tuple[bool, float]] = {}

    @property
    def version(self) -> int:
        return self._version

    @property
    def registrations(self) -> list[Registration]:
        return [
            self._registrations[key_range] for key_range in self._registered
        ]

    async def activate(self, key_range: KeyRange) -> bool:
        await asyncio.sleep(0)

        registration = self._registrations.get(key_range)
        if registration is not None:
            if registration.state == RegistrationState.FORCE_PURGED:
                self._mark_changed(key_range)
                registration.state = RegistrationState.ACTIVE

            return True

        if len(self._overlapping(key_range)) > 0:
            return False

        self._mark_changed(key_range)
        self._registrations[key_range] = Registration(
            key_range=key_range,
            state=RegistrationState.ACTIVE,
            granules=self._split(key_range),
        )
        self._registered.add(key_range)

        return True

    async def deactivate(self, key_range: KeyRange) -> bool:
        await asyncio.sleep(0)

        overlapping = self._overlapping(key_range)
        if len(overlapping) == 0:
            return True

        aligned = (
            overlapping[0].key_range.begin == key_range.begin
            and max(
                registration.key_range.end for registration in overlapping
            ) == key_range.end
            and all(
                key_range.contains(registration.key_range)
                for registration in overlapping
            )
        )

        if not aligned:
            return False

        for registration in overlapping:
            self._mark_changed(registration.key_range)
            self._remove(registration.key_range)

        return True

    async def is_active(self, key_range: KeyRange) -> int:
        await asyncio.sleep(0)

        now = time.monotonic()
        visible = [
            candidate for candidate in self._candidates(key_range)
            if self._visible_active(candidate, now)
        ]

        if self._covered(key_range, visible):
            return self._version

        return INVALID_VERSION

    async def purge(self, key_range: KeyRange, force: bool) -> bytes:
        await asyncio.sleep(0)

        purge_token = self._random.getrandbits(128).to_bytes(16, "big")
        self._purges[purge_token] = PurgeRecord(
            key_range=key_range,
            force=force,
        )

        if force:
            for registration in self._overlapping(key_range):
                if registration.state == RegistrationState.ACTIVE:
                    self._mark_changed(registration.key_range)
                    registration.state = RegistrationState.FORCE_PURGED

        return purge_token

    async def await_purge_complete(self, purge_token: bytes) -> None:
        if purge_token not in self._purges:
            raise ServiceError(f"Unknown purge token {purge_token.hex()}")

        await asyncio.sleep(0)
        self._purges.pop(purge_token, None)

    async def list_active_ranges(
        self,
        key_range: KeyRange,
        limit: int,
    ) -> list[KeyRange]:
        await asyncio.sleep(0)

        return [
            registration.key_range
            for registration in self._overlapping(key_range)
            if registration.state == RegistrationState.ACTIVE
        ][:limit]

    def create_transaction(self) -> InMemoryTransaction:
        return InMemoryTransaction(self)

    def should_conflict(self) -> bool:
        return (
            self.config.conflict_rate > 0
            and self._random.random() < self.config.conflict_rate
        )

    def granules_for(self, key_range: KeyRange) -> list[KeyRange]:
        return [
            granule
            for registration in self._overlapping(key_range)
            if registration.state == RegistrationState.ACTIVE
            for granule in registration.granules
            if granule.intersects(key_range)
        ]

    def _overlapping(self, key_range: KeyRange) -> list[Registration]:
        return [
            self._registrations[existing]
            for existing in self._registered.overlapping(key_range)
        ]

    def _remove(self, key_range: KeyRange) -> None:
        self._registrations.pop(key_range, None)
        self._registered.discard(key_range)

    def _current_active(self, key_range: KeyRange) -> bool:
        registration = self._registrations.get(key_range)
        return (
            registration is not None
            and registration.state == RegistrationState.ACTIVE
        )

    def _visible_active(self, key_range: KeyRange, now: float) -> bool:
        settling = self._settling.get(key_range)
        if settling is not None:
            previous, settles_at = settling
            if now < settles_at:
                return previous

            del self._settling[key_range]

        return self._current_active(key_range)

    def _candidates(self, key_range: KeyRange) -> list[KeyRange]:
        candidates = set(self._registrations)
        candidates.update(self._settling)

        return sort_ranges(
            candidate for candidate in candidates
            if candidate.intersects(key_range)
        )

    def _covered(self, key_range: KeyRange, ranges: list[KeyRange]) -> bool:
        position = key_range.begin

        for candidate in ranges:
            if candidate.begin > position:
                return False

            position = max(position, candidate.end)
            if position >= key_range.end:
                return True

        return False

    def _mark_changed(self, key_range: KeyRange) -> None:
        self._version += 1

        if self.config.convergence_lag <= 0:
            return

        now = time.monotonic()
        for settled in [
            candidate
            for candidate, (_, settles_at) in self._settling.items()
            if now >= settles_at
        ]:
            del self._settling[settled]

        self._settling[key_range] = (
            self._visible_active(key_range, now),
            now + self.config.convergence_lag,
        )

    def _split(self, key_range: KeyRange) -> list[KeyRange]:
        split_key = key_range.begin + self.config.granule_split_suffix

        if self.config.split_granules and key_range.begin < split_key < key_range.end:
            return [
                KeyRange(key_range.begin, split_key),
                KeyRange(split_key, key_range.end),
            ]

        return [key_range]
