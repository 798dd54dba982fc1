"""Record types shared by the replacement policies and the controller.

- CacheResult and its per-policy variants: outcome of one access
- CacheStats: frozen snapshot of a policy's counters
- DisplayItem and its per-policy variants: read-only view of one slot

Each policy returns exactly one result variant and one display variant, so
callers can rely on the fields being meaningful for that policy instead of
checking a bag of optional values.
"""

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from policysim.core.config import EMPTY_SLOT_MARKER

# a key is any equality-comparable value; in practice short strings or ints
Key = Union[str, int]

COLD_MISS = "cold"
CAPACITY_MISS = "capacity"

QUEUE_A1 = "A1"
QUEUE_AM = "Am"


@dataclass(frozen=True)
class CacheResult:
    """Outcome of one access.

    Fields:
    - hit: whether the key was already cached
    - miss_type: COLD_MISS or CAPACITY_MISS, only set on a miss
    - evicted_value: the key that had to leave, only set when a slot was vacated
    - inserted_value: the key that was installed, only set on a miss
    """

    hit: bool
    miss_type: Optional[str] = None
    evicted_value: Optional[Key] = None
    inserted_value: Optional[Key] = None

    @property
    def evicted(self) -> bool:
        return not self.hit and self.evicted_value is not None


@dataclass(frozen=True)
class ClockResult(CacheResult):
    # how many reference bits the hand cleared before it found a victim
    second_chances_given: int = 0


@dataclass(frozen=True)
class RandomResult(CacheResult):
    # slot index picked for eviction (None when an empty slot was used)
    random_slot_selected: Optional[int] = None


@dataclass(frozen=True)
class OptimalResult(CacheResult):
    # distance to the evicted key's next use, math.inf if it is never used again
    next_access_distance: Optional[float] = None


@dataclass(frozen=True)
class TwoQueueResult(CacheResult):
    # True when a hit promoted the key from A1 to Am
    queue_transfer: bool = False
    evicted_from_queue: Optional[str] = None


@dataclass(frozen=True)
class CacheStats:
    """Counters for one policy at one point in time.

    Rates are derived from the counters and never stored. `extra_items` holds
    policy-specific values (clock hand, queue sizes, sequence position) as
    sorted (name, value) pairs so the snapshot stays immutable and hashable;
    `extra` is a read-only mapping view of them.
    """

    total_accesses: int = 0
    hits: int = 0
    misses: int = 0
    cold_misses: int = 0
    capacity_misses: int = 0
    capacity: int = 0
    occupancy: int = 0
    unique_values_seen: int = 0
    extra_items: Tuple[Tuple[str, Any], ...] = ()

    @property
    def extra(self) -> Mapping[str, Any]:
        return MappingProxyType(dict(self.extra_items))

    @property
    def hit_rate(self) -> float:
        return (self.hits / self.total_accesses) if self.total_accesses else 0.0

    @property
    def miss_rate(self) -> float:
        return (self.misses / self.total_accesses) if self.total_accesses else 0.0

    @property
    def cold_miss_rate(self) -> float:
        return (self.cold_misses / self.total_accesses) if self.total_accesses else 0.0

    @property
    def capacity_miss_rate(self) -> float:
        return (self.capacity_misses / self.total_accesses) if self.total_accesses else 0.0

    def as_dict(self) -> Dict[str, Any]:
        d = {
            'total_accesses': self.total_accesses,
            'hits': self.hits,
            'misses': self.misses,
            'cold_misses': self.cold_misses,
            'capacity_misses': self.capacity_misses,
            'hit_rate': self.hit_rate,
            'miss_rate': self.miss_rate,
            'cold_miss_rate': self.cold_miss_rate,
            'capacity_miss_rate': self.capacity_miss_rate,
            'capacity': self.capacity,
            'occupancy': self.occupancy,
            'unique_values_seen': self.unique_values_seen,
        }
        d.update(self.extra)
        return d


@dataclass(frozen=True)
class DisplayItem:
    """Read-only view of one cache slot.

    `index` is the slot position inside the policy (for 2Q, the position in
    the combined A1 + Am listing).
    """

    index: int
    value: Optional[Key] = None

    @property
    def is_empty(self) -> bool:
        return self.value is None

    @property
    def label(self) -> str:
        return EMPTY_SLOT_MARKER if self.value is None else str(self.value)


@dataclass(frozen=True)
class FIFODisplayItem(DisplayItem):
    insertion_order: Optional[int] = None
    is_oldest: bool = False
    is_newest: bool = False


@dataclass(frozen=True)
class LRUDisplayItem(DisplayItem):
    last_access_time: Optional[int] = None
    is_lru: bool = False
    is_mru: bool = False


@dataclass(frozen=True)
class ClockDisplayItem(DisplayItem):
    reference_bit: bool = False
    is_clock_hand: bool = False


@dataclass(frozen=True)
class RandomDisplayItem(DisplayItem):
    @property
    def can_be_evicted(self) -> bool:
        # any occupied slot may be picked
        return not self.is_empty


@dataclass(frozen=True)
class OptimalDisplayItem(DisplayItem):
    # math.inf when the key is not used again (or the slot is empty)
    next_access_distance: float = math.inf


@dataclass(frozen=True)
class TwoQueueDisplayItem(DisplayItem):
    queue: Optional[str] = None
    # 'oldest'/'youngest' in A1, 'LRU'/'MRU' in Am, 'middle', or 'empty'
    position: str = 'empty'
