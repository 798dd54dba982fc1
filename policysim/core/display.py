"""Display projection: UI-agnostic views of policy state.

Nothing in here mutates a policy. The controller captures a CacheState after
every access; presentation layers turn the per-slot annotations into
colours, arrows, badges or whatever they draw.
"""
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from policysim.core.results import (
    CacheResult,
    ClockDisplayItem,
    DisplayItem,
    FIFODisplayItem,
    Key,
    LRUDisplayItem,
    OptimalDisplayItem,
    RandomDisplayItem,
    TwoQueueDisplayItem,
)


@dataclass(frozen=True)
class CacheState:
    """Slot views in display order plus raw slot values in slot order."""

    display_info: Tuple[DisplayItem, ...]
    values: Tuple[Optional[Key], ...]

    @property
    def occupied(self) -> List[Key]:
        return [v for v in self.values if v is not None]


def capture_state(policy) -> CacheState:
    return CacheState(
        display_info=tuple(policy.get_display_info()),
        values=tuple(policy.get_values()),
    )


def find_clock_hand(state: CacheState) -> Optional[int]:
    """Slot index the clock hand points at, or None for non-Clock states."""
    for item in state.display_info:
        if isinstance(item, ClockDisplayItem) and item.is_clock_hand:
            return item.index
    return None


def get_random_slot_selected(result: Optional[CacheResult]) -> Optional[int]:
    return getattr(result, 'random_slot_selected', None)


def get_evicted_from_queue(result: Optional[CacheResult]) -> Optional[str]:
    return getattr(result, 'evicted_from_queue', None)


def slot_annotations(item: DisplayItem) -> List[str]:
    """Short role tags for one slot, e.g. ['oldest'] or ['ref=1', 'hand']."""
    tags = []
    if isinstance(item, FIFODisplayItem):
        if item.is_oldest:
            tags.append('oldest')
        if item.is_newest:
            tags.append('newest')
    elif isinstance(item, LRUDisplayItem):
        if item.is_lru:
            tags.append('LRU')
        if item.is_mru:
            tags.append('MRU')
    elif isinstance(item, ClockDisplayItem):
        # the hand is shown on empty slots too
        if not item.is_empty:
            tags.append('ref=1' if item.reference_bit else 'ref=0')
        if item.is_clock_hand:
            tags.append('hand')
    elif isinstance(item, RandomDisplayItem):
        if item.can_be_evicted:
            tags.append('candidate')
    elif isinstance(item, OptimalDisplayItem):
        if not item.is_empty:
            if item.next_access_distance == math.inf:
                tags.append('never')
            else:
                tags.append(f'next+{int(item.next_access_distance)}')
    elif isinstance(item, TwoQueueDisplayItem):
        if item.queue is not None:
            tags.append(item.queue)
            tags.append(item.position)
    return tags


def format_state(state: CacheState) -> str:
    """One-line text rendering, e.g. "[A:oldest] [B] [---]"."""
    parts = []
    for item in state.display_info:
        tags = slot_annotations(item)
        if tags:
            parts.append(f"[{item.label}:{','.join(tags)}]")
        else:
            parts.append(f"[{item.label}]")
    return ' '.join(parts)


__all__ = [
    "CacheState",
    "capture_state",
    "find_clock_hand",
    "get_random_slot_selected",
    "get_evicted_from_queue",
    "slot_annotations",
    "format_state",
]
