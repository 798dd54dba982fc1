"""Replacement policy implementations for the policy comparison engine.

This module provides six policies with a small, consistent API so the
controller can drive any two of them interchangeably:

- FIFOPolicy(capacity)
- LRUPolicy(capacity)
- ClockPolicy(capacity)
- RandomPolicy(capacity, seed=None)
- OptimalPolicy(capacity, access_sequence)
- TwoQueuePolicy(capacity, a1_threshold=None)

API (methods):
- check_cache(key): look the key up, install it on a miss, return a result
- get_stats(): CacheStats snapshot of the counters
- get_display_info(): one DisplayItem per slot, for UI/debug
- is_full(), has_seen_before(key), get_values(), get_next_eviction_value()
- reset(): clear slots, counters and the "ever seen" set

Every policy owns its counters; nothing here is shared between instances.
These implementations never print; callers inspect state and log.
"""

import math
import random
from collections import OrderedDict, deque
from typing import Iterable, List, Optional, Sequence, Tuple

from policysim.core.config import DEFAULT_A1_RATIO, POLICY_NAMES
from policysim.core.results import (
    CAPACITY_MISS,
    COLD_MISS,
    QUEUE_A1,
    QUEUE_AM,
    CacheResult,
    CacheStats,
    ClockDisplayItem,
    ClockResult,
    DisplayItem,
    FIFODisplayItem,
    Key,
    LRUDisplayItem,
    OptimalDisplayItem,
    OptimalResult,
    RandomDisplayItem,
    RandomResult,
    TwoQueueDisplayItem,
    TwoQueueResult,
)
from policysim.data.stats_export import Statistics


class ReplacementPolicy:
    """Base class: counters, miss classification and the check_cache skeleton.

    Subclasses implement _clear, _lookup, _on_hit, _on_miss, occupancy,
    get_values and get_display_info.
    """

    name = ""

    def __init__(self, capacity: int):
        capacity = int(capacity)
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.stats = Statistics()
        self._ever_seen = set()
        self.reset()

    def check_cache(self, key: Key) -> CacheResult:
        """Look up `key`; on a miss install it (evicting if needed)."""
        slot = self._lookup(key)
        if slot is not None:
            self.stats.record_hit()
            return self._on_hit(key, slot)
        miss_type = self._record_miss(key)
        return self._on_miss(key, miss_type)

    def _record_miss(self, key: Key) -> str:
        # cold iff the key never occupied a slot before
        cold = key not in self._ever_seen
        self.stats.record_miss(cold)
        self._ever_seen.add(key)
        return COLD_MISS if cold else CAPACITY_MISS

    def reset(self) -> None:
        self._clear()
        self.stats.reset()
        self._ever_seen.clear()

    def get_stats(self) -> CacheStats:
        return self.stats.snapshot(
            capacity=self.capacity,
            occupancy=self.occupancy(),
            unique_seen=len(self._ever_seen),
            **self._stats_extra()
        )

    def _stats_extra(self) -> dict:
        return {}

    def is_full(self) -> bool:
        return self.occupancy() >= self.capacity

    def has_seen_before(self, key: Key) -> bool:
        return key in self._ever_seen

    def get_next_eviction_value(self) -> Optional[Key]:
        return None

    def __len__(self):
        return self.occupancy()

    def __contains__(self, key):
        return self._lookup(key) is not None

    # subclass hooks
    def _clear(self) -> None:
        raise NotImplementedError

    def _lookup(self, key: Key):
        raise NotImplementedError

    def _on_hit(self, key: Key, slot) -> CacheResult:
        raise NotImplementedError

    def _on_miss(self, key: Key, miss_type: str) -> CacheResult:
        raise NotImplementedError

    def occupancy(self) -> int:
        raise NotImplementedError

    def get_values(self) -> List[Optional[Key]]:
        raise NotImplementedError

    def get_display_info(self) -> List[DisplayItem]:
        raise NotImplementedError


class SlotPolicy(ReplacementPolicy):
    """A policy over a fixed table of `capacity` slots.

    Slots are filled from index 0 upwards and are only ever vacated by
    replacing their key, so the table never has holes after a fill.
    """

    def _clear(self) -> None:
        self._slots: List[Optional[Key]] = [None] * self.capacity
        # key -> slot index, for O(1) lookups
        self._index = {}

    def _lookup(self, key: Key) -> Optional[int]:
        return self._index.get(key)

    def _first_empty(self) -> Optional[int]:
        for i, value in enumerate(self._slots):
            if value is None:
                return i
        return None

    def _install(self, slot: int, key: Key) -> Optional[Key]:
        """Place `key` in `slot` and return the key it replaced (if any)."""
        evicted = self._slots[slot]
        if evicted is not None:
            del self._index[evicted]
        self._slots[slot] = key
        self._index[key] = slot
        return evicted

    def occupancy(self) -> int:
        return len(self._index)

    def get_values(self) -> List[Optional[Key]]:
        return list(self._slots)


class FIFOPolicy(SlotPolicy):
    """First-In-First-Out: evict the oldest insertion, hits change nothing."""

    name = "FIFO"

    def _clear(self) -> None:
        super()._clear()
        self._insertion_order = [0] * self.capacity
        self._insertion_counter = 0
        # keys oldest -> newest
        self._queue = deque()

    def _on_hit(self, key, slot):
        return CacheResult(hit=True)

    def _on_miss(self, key, miss_type):
        self._insertion_counter += 1
        slot = self._first_empty()
        if slot is None:
            oldest = self._queue.popleft()
            slot = self._index[oldest]
        evicted = self._install(slot, key)
        self._queue.append(key)
        self._insertion_order[slot] = self._insertion_counter
        return CacheResult(hit=False, miss_type=miss_type, evicted_value=evicted, inserted_value=key)

    def get_next_eviction_value(self):
        return self._queue[0] if self._queue else None

    def get_display_info(self) -> List[FIFODisplayItem]:
        """Slots sorted oldest -> newest, empty slots last."""
        oldest = self.get_next_eviction_value()
        # only flag a newest item when there is more than one
        newest = self._queue[-1] if len(self._queue) > 1 else None
        items = []
        for i, value in enumerate(self._slots):
            if value is None:
                items.append(FIFODisplayItem(index=i))
                continue
            items.append(FIFODisplayItem(
                index=i,
                value=value,
                insertion_order=self._insertion_order[i],
                is_oldest=value == oldest,
                is_newest=value == newest,
            ))
        return sorted(items, key=lambda it: (it.is_empty, it.insertion_order or 0, it.index))


class LRUPolicy(SlotPolicy):
    """Least-Recently-Used replacement using OrderedDict.

    OrderedDict keeps insertion order; we move accessed items to the end so
    the least recently used item is at the beginning. The per-slot access
    counter is kept alongside for display.
    """

    name = "LRU"

    def _clear(self) -> None:
        super()._clear()
        self._recency = OrderedDict()
        self._last_access = [0] * self.capacity
        self._access_time = 0

    def check_cache(self, key):
        # every access moves the clock, hit or miss
        self._access_time += 1
        return super().check_cache(key)

    def _on_hit(self, key, slot):
        # mark as most recently used
        self._recency.move_to_end(key)
        self._last_access[slot] = self._access_time
        return CacheResult(hit=True)

    def _on_miss(self, key, miss_type):
        slot = self._first_empty()
        if slot is None:
            lru_key, _ = self._recency.popitem(last=False)
            slot = self._index[lru_key]
        evicted = self._install(slot, key)
        self._recency[key] = True
        self._last_access[slot] = self._access_time
        return CacheResult(hit=False, miss_type=miss_type, evicted_value=evicted, inserted_value=key)

    def get_next_eviction_value(self):
        return next(iter(self._recency), None)

    def get_values_by_recency(self) -> List[Tuple[Key, int, int]]:
        """Return (key, last_access_time, slot) tuples, most recent first."""
        out = []
        for key in reversed(self._recency):
            slot = self._index[key]
            out.append((key, self._last_access[slot], slot))
        return out

    def get_display_info(self) -> List[LRUDisplayItem]:
        """Slots sorted LRU -> MRU, empty slots last."""
        lru = self.get_next_eviction_value()
        mru = next(reversed(self._recency)) if len(self._recency) > 1 else None
        items = []
        for i, value in enumerate(self._slots):
            if value is None:
                items.append(LRUDisplayItem(index=i))
                continue
            items.append(LRUDisplayItem(
                index=i,
                value=value,
                last_access_time=self._last_access[i],
                is_lru=value == lru,
                is_mru=value == mru,
            ))
        return sorted(items, key=lambda it: (it.is_empty, it.last_access_time or 0, it.index))


class ClockPolicy(SlotPolicy):
    """Second-chance replacement with a rotating hand over the slots."""

    name = "Clock"

    def _clear(self) -> None:
        super()._clear()
        self._reference_bits = [False] * self.capacity
        self._hand = 0

    def _on_hit(self, key, slot):
        self._reference_bits[slot] = True
        return ClockResult(hit=True)

    def _on_miss(self, key, miss_type):
        second_chances = 0
        slot = self._first_empty()
        if slot is None:
            slot, second_chances = self._sweep()
        evicted = self._install(slot, key)
        # new items start with their bit set
        self._reference_bits[slot] = True
        self._hand = (slot + 1) % self.capacity
        return ClockResult(
            hit=False,
            miss_type=miss_type,
            evicted_value=evicted,
            inserted_value=key,
            second_chances_given=second_chances,
        )

    def _sweep(self) -> Tuple[int, int]:
        """Advance the hand, clearing set bits, until a clear bit is found.

        Terminates within one full turn plus one step since every slot the
        hand passes gets its bit cleared.
        """
        cleared = 0
        while self._reference_bits[self._hand]:
            self._reference_bits[self._hand] = False
            cleared += 1
            self._hand = (self._hand + 1) % self.capacity
        return self._hand, cleared

    def get_next_eviction_value(self):
        if not self.is_full():
            return None
        # same scan as _sweep but without touching the bits
        for step in range(self.capacity):
            slot = (self._hand + step) % self.capacity
            if not self._reference_bits[slot]:
                return self._slots[slot]
        return self._slots[self._hand]

    def get_clock_hand(self) -> int:
        return self._hand

    def get_reference_bits(self) -> List[bool]:
        return list(self._reference_bits)

    def _stats_extra(self):
        return {'clock_hand': self._hand}

    def get_display_info(self) -> List[ClockDisplayItem]:
        return [
            ClockDisplayItem(
                index=i,
                value=value,
                reference_bit=self._reference_bits[i],
                is_clock_hand=i == self._hand,
            )
            for i, value in enumerate(self._slots)
        ]


class RandomPolicy(SlotPolicy):
    """Random replacement picks an occupied slot uniformly when eviction is required.

    The generator is owned by the instance and re-seeded on reset(), so a
    seeded instance replays identically after a reset.
    """

    name = "Random"

    def __init__(self, capacity: int, seed: Optional[int] = None):
        self._seed = seed
        super().__init__(capacity)

    def _clear(self) -> None:
        super()._clear()
        self._rng = random.Random(self._seed)

    def _on_hit(self, key, slot):
        return RandomResult(hit=True)

    def _on_miss(self, key, miss_type):
        selected = None
        slot = self._first_empty()
        if slot is None:
            occupied = [i for i, value in enumerate(self._slots) if value is not None]
            slot = self._rng.choice(occupied)
            selected = slot
        evicted = self._install(slot, key)
        return RandomResult(
            hit=False,
            miss_type=miss_type,
            evicted_value=evicted,
            inserted_value=key,
            random_slot_selected=selected,
        )

    def get_eviction_candidates(self) -> List[Tuple[int, Key, float]]:
        """Return (slot, key, probability) for every slot that could be evicted."""
        occupied = [(i, value) for i, value in enumerate(self._slots) if value is not None]
        if not occupied:
            return []
        p = 1.0 / len(occupied)
        return [(i, value, p) for i, value in occupied]

    def get_display_info(self) -> List[RandomDisplayItem]:
        return [RandomDisplayItem(index=i, value=value) for i, value in enumerate(self._slots)]


class OptimalPolicy(SlotPolicy):
    """Belady's algorithm: evict the key whose next use is furthest away.

    Needs the whole access sequence up front and assumes check_cache is
    called with that sequence in order. Only meaningful as an offline
    reference since it looks into the future.
    """

    name = "Optimal"

    def __init__(self, capacity: int, access_sequence: Iterable[Key] = ()):
        self._sequence = tuple(access_sequence)
        super().__init__(capacity)

    def _clear(self) -> None:
        super()._clear()
        # index of the next access in the sequence
        self._position = 0

    def check_cache(self, key):
        self._position += 1
        return super().check_cache(key)

    def _next_use(self, key: Key) -> float:
        """Distance from the current position to the next use of `key`."""
        for i in range(self._position, len(self._sequence)):
            if self._sequence[i] == key:
                return i - self._position + 1
        return math.inf

    def _find_victim(self) -> Tuple[int, float]:
        victim = 0
        furthest = -1
        for i, value in enumerate(self._slots):
            if value is None:
                continue
            distance = self._next_use(value)
            # strict > keeps the lowest slot index on ties
            if distance > furthest:
                furthest = distance
                victim = i
        return victim, furthest

    def _on_hit(self, key, slot):
        return OptimalResult(hit=True)

    def _on_miss(self, key, miss_type):
        distance = None
        slot = self._first_empty()
        if slot is None:
            slot, distance = self._find_victim()
        evicted = self._install(slot, key)
        return OptimalResult(
            hit=False,
            miss_type=miss_type,
            evicted_value=evicted,
            inserted_value=key,
            next_access_distance=distance,
        )

    def get_next_eviction_value(self):
        if not self.is_full():
            return None
        slot, _ = self._find_victim()
        return self._slots[slot]

    def get_current_position(self) -> int:
        return self._position

    def get_access_sequence(self) -> List[Key]:
        return list(self._sequence)

    def get_upcoming_accesses(self, count: int = 5) -> List[Key]:
        return list(self._sequence[self._position:self._position + count])

    def _stats_extra(self):
        return {
            'current_position': self._position,
            'sequence_length': len(self._sequence),
            'remaining_accesses': max(0, len(self._sequence) - self._position),
        }

    def get_display_info(self) -> List[OptimalDisplayItem]:
        return [
            OptimalDisplayItem(index=i) if value is None
            else OptimalDisplayItem(index=i, value=value, next_access_distance=self._next_use(value))
            for i, value in enumerate(self._slots)
        ]


class TwoQueuePolicy(ReplacementPolicy):
    """Simplified 2Q.

    A1 holds keys seen once (FIFO), Am holds keys referenced again (LRU).
    A hit in A1 promotes the key to the MRU end of Am. On a miss with a full
    cache, the oldest A1 key goes if A1 is above the threshold (or Am is
    empty), otherwise the LRU key of Am goes. New keys always enter A1.
    """

    name = "2Q"

    def __init__(self, capacity: int, a1_threshold: Optional[int] = None):
        if a1_threshold is None:
            a1_threshold = max(1, int(int(capacity) * DEFAULT_A1_RATIO))
        if a1_threshold < 1:
            raise ValueError(f"a1_threshold must be >= 1, got {a1_threshold}")
        self.a1_threshold = a1_threshold
        super().__init__(capacity)

    def _clear(self) -> None:
        # both ordered oldest/LRU first
        self._a1 = OrderedDict()
        self._am = OrderedDict()

    def check_cache(self, key):
        if key in self._am:
            self.stats.record_hit()
            self._am.move_to_end(key)
            return TwoQueueResult(hit=True)
        if key in self._a1:
            self.stats.record_hit()
            del self._a1[key]
            self._am[key] = True
            return TwoQueueResult(hit=True, queue_transfer=True)

        miss_type = self._record_miss(key)
        evicted = None
        evicted_from = None
        if self.is_full():
            evicted_from = self._eviction_queue()
            if evicted_from == QUEUE_A1:
                evicted, _ = self._a1.popitem(last=False)
            else:
                evicted, _ = self._am.popitem(last=False)
        self._a1[key] = True
        return TwoQueueResult(
            hit=False,
            miss_type=miss_type,
            evicted_value=evicted,
            inserted_value=key,
            evicted_from_queue=evicted_from,
        )

    def _eviction_queue(self) -> str:
        if len(self._a1) > self.a1_threshold or not self._am:
            return QUEUE_A1
        return QUEUE_AM

    def _lookup(self, key):
        if key in self._a1:
            return QUEUE_A1
        if key in self._am:
            return QUEUE_AM
        return None

    def occupancy(self) -> int:
        return len(self._a1) + len(self._am)

    def get_next_eviction_value(self):
        if not self.is_full():
            return None
        queue = self._a1 if self._eviction_queue() == QUEUE_A1 else self._am
        return next(iter(queue), None)

    def get_a1_queue(self) -> List[Key]:
        return list(self._a1)

    def get_am_queue(self) -> List[Key]:
        """Am contents from LRU to MRU."""
        return list(self._am)

    def get_values(self) -> List[Optional[Key]]:
        values = list(self._a1) + list(self._am)
        return values + [None] * (self.capacity - len(values))

    def _stats_extra(self):
        return {
            'a1_size': len(self._a1),
            'am_size': len(self._am),
            'a1_threshold': self.a1_threshold,
        }

    def get_display_info(self) -> List[TwoQueueDisplayItem]:
        """A1 oldest -> youngest, then Am LRU -> MRU, then empty slots."""
        items = []
        for queue_name, queue, first, last in (
            (QUEUE_A1, self._a1, 'oldest', 'youngest'),
            (QUEUE_AM, self._am, 'LRU', 'MRU'),
        ):
            keys = list(queue)
            for i, key in enumerate(keys):
                if i == 0:
                    position = first
                elif i == len(keys) - 1:
                    position = last
                else:
                    position = 'middle'
                items.append(TwoQueueDisplayItem(index=len(items), value=key, queue=queue_name, position=position))
        while len(items) < self.capacity:
            items.append(TwoQueueDisplayItem(index=len(items)))
        return items


def create_policy(
    name: str,
    capacity: int,
    access_sequence: Sequence[Key] = (),
    seed: Optional[int] = None,
    a1_threshold: Optional[int] = None,
) -> ReplacementPolicy:
    """Build a fresh policy instance by name.

    Raises ValueError for names outside POLICY_NAMES or a capacity below 1.
    """
    if name == "FIFO":
        return FIFOPolicy(capacity)
    elif name == "LRU":
        return LRUPolicy(capacity)
    elif name == "Clock":
        return ClockPolicy(capacity)
    elif name == "Random":
        return RandomPolicy(capacity, seed=seed)
    elif name == "Optimal":
        return OptimalPolicy(capacity, access_sequence)
    elif name == "2Q":
        return TwoQueuePolicy(capacity, a1_threshold=a1_threshold)
    raise ValueError(f"unknown policy {name!r}, expected one of {', '.join(POLICY_NAMES)}")


__all__ = [
    "ReplacementPolicy",
    "FIFOPolicy",
    "LRUPolicy",
    "ClockPolicy",
    "RandomPolicy",
    "OptimalPolicy",
    "TwoQueuePolicy",
    "create_policy",
]
