"""CompareController runs two replacement policies side by side.

The whole access sequence is replayed against fresh instances of both
policies as soon as anything about the comparison changes (sequence,
capacity or either policy). Navigation afterwards only moves a cursor over
the recorded steps, so stepping backwards or jumping is O(1) and Optimal
always sees the complete sequence it needs for its lookahead.

Cursor -1 means "before the first access": both caches empty, zero stats.
"""
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from policysim.core.config import (
    DEFAULT_ALPHABET,
    DEFAULT_CAPACITY,
    DEFAULT_POLICIES,
    DEFAULT_SEQUENCE_LENGTH,
    POLICY_NAMES,
)
from policysim.core.display import CacheState, capture_state
from policysim.core.replacement_policies import create_policy
from policysim.core.results import CacheResult, CacheStats, Key
from policysim.core.sequence import generate_sequence, normalize_sequence
from policysim.core.simulator import PolicySimulator


@dataclass(frozen=True)
class ComparisonStep:
    step_index: int
    access_value: Key
    result_a: CacheResult
    result_b: CacheResult
    state_a: CacheState
    state_b: CacheState
    stats_a: CacheStats
    stats_b: CacheStats


@dataclass(frozen=True)
class PolicySnapshot:
    name: str
    # None before the first access
    result: Optional[CacheResult]
    state: CacheState
    stats: CacheStats


@dataclass(frozen=True)
class Comparison:
    step: int
    access_value: Optional[Key]
    cache_a: PolicySnapshot
    cache_b: PolicySnapshot


def _check_policy_name(name: str):
    if name not in POLICY_NAMES:
        raise ValueError(f"unknown policy {name!r}, expected one of {', '.join(POLICY_NAMES)}")


def _check_capacity(capacity) -> int:
    capacity = int(capacity)
    if capacity < 1:
        raise ValueError(f"capacity must be >= 1, got {capacity}")
    return capacity


class CompareController:
    def __init__(
        self,
        policy_a: str = DEFAULT_POLICIES[0],
        policy_b: str = DEFAULT_POLICIES[1],
        capacity: int = DEFAULT_CAPACITY,
        sequence_length: int = DEFAULT_SEQUENCE_LENGTH,
        custom_sequence: Optional[Sequence[Key]] = None,
        seed: Optional[int] = None,
        alphabet: Sequence[Key] = DEFAULT_ALPHABET,
        a1_threshold: Optional[int] = None,
    ):
        # configuration errors are raised here, before anything is built
        _check_policy_name(policy_a)
        _check_policy_name(policy_b)
        self._capacity = _check_capacity(capacity)
        self._policy_a = policy_a
        self._policy_b = policy_b
        self._alphabet = tuple(alphabet)
        self._a1_threshold = a1_threshold
        self._seed = seed
        self._rng = random.Random(seed)

        if custom_sequence is not None:
            self._sequence = normalize_sequence(custom_sequence)
        else:
            self._sequence = generate_sequence(sequence_length, self._alphabet, self._rng)

        self._current_step = -1
        self._build_step_history()

    # --- building -----------------------------------------------------

    def _policy_seed(self) -> Optional[int]:
        # Random policies get a seed derived from ours so seeded sessions replay exactly
        if self._seed is None:
            return None
        return self._rng.getrandbits(32)

    def _new_policy(self, name: str):
        return create_policy(
            name,
            self._capacity,
            access_sequence=self._sequence,
            seed=self._policy_seed(),
            a1_threshold=self._a1_threshold,
        )

    def _build_step_history(self):
        # Optimal instances are always built from the current sequence here,
        # so they can never be fed a different one.
        policy_a = self._new_policy(self._policy_a)
        policy_b = self._new_policy(self._policy_b)
        self._initial_a = (capture_state(policy_a), policy_a.get_stats())
        self._initial_b = (capture_state(policy_b), policy_b.get_stats())

        sim_a = PolicySimulator(policy_a)
        sim_b = PolicySimulator(policy_b)
        sim_a.load_sequence(self._sequence)
        sim_b.load_sequence(self._sequence)
        trace_a = sim_a.run_all()
        trace_b = sim_b.run_all()

        history = []
        for a, b in zip(trace_a, trace_b):
            history.append(ComparisonStep(
                step_index=a.index,
                access_value=a.key,
                result_a=a.result,
                result_b=b.result,
                state_a=a.state,
                state_b=b.state,
                stats_a=a.stats,
                stats_b=b.stats,
            ))
        self._history: Tuple[ComparisonStep, ...] = tuple(history)
        # keep the cursor valid if the trace got shorter
        self._current_step = min(self._current_step, self.get_max_step())

    # --- navigation ---------------------------------------------------

    def step_forward(self) -> bool:
        if self._current_step < self.get_max_step():
            self._current_step += 1
            return True
        return False

    def step_backward(self) -> bool:
        if self._current_step > -1:
            self._current_step -= 1
            return True
        return False

    def jump_to_step(self, step: int) -> bool:
        if isinstance(step, int) and not isinstance(step, bool) and -1 <= step <= self.get_max_step():
            self._current_step = step
            return True
        return False

    def reset(self):
        """Rewind to before the first access; the trace is kept."""
        self._current_step = -1

    # --- reconfiguration (each one rebuilds the whole trace) ----------

    def update_policies(self, policy_a: str, policy_b: str):
        _check_policy_name(policy_a)
        _check_policy_name(policy_b)
        self._policy_a = policy_a
        self._policy_b = policy_b
        self._build_step_history()

    def set_capacity(self, capacity: int):
        self._capacity = _check_capacity(capacity)
        self._build_step_history()

    def generate_new_sequence(self, length: int = DEFAULT_SEQUENCE_LENGTH):
        self._sequence = generate_sequence(length, self._alphabet, self._rng)
        self._current_step = -1
        self._build_step_history()

    def set_custom_sequence(self, sequence: Sequence[Key]):
        self._sequence = normalize_sequence(sequence)
        self._current_step = -1
        self._build_step_history()

    # --- queries ------------------------------------------------------

    def get_current_step(self) -> int:
        return self._current_step

    def get_max_step(self) -> int:
        return len(self._sequence) - 1

    def get_capacity(self) -> int:
        return self._capacity

    def get_policy_names(self) -> Tuple[str, str]:
        return self._policy_a, self._policy_b

    def get_access_sequence(self) -> List[Key]:
        return list(self._sequence)

    def get_current_access_value(self) -> Optional[Key]:
        return self._sequence[self._current_step] if self._current_step >= 0 else None

    def get_step_history(self) -> List[ComparisonStep]:
        return list(self._history)

    def get_current_step_data(self) -> Optional[ComparisonStep]:
        return self._history[self._current_step] if self._current_step >= 0 else None

    def get_current_comparison(self) -> Comparison:
        if self._current_step < 0:
            # before first access - show the initial empty state
            state_a, stats_a = self._initial_a
            state_b, stats_b = self._initial_b
            return Comparison(
                step=-1,
                access_value=None,
                cache_a=PolicySnapshot(self._policy_a, None, state_a, stats_a),
                cache_b=PolicySnapshot(self._policy_b, None, state_b, stats_b),
            )

        data = self._history[self._current_step]
        return Comparison(
            step=self._current_step,
            access_value=data.access_value,
            cache_a=PolicySnapshot(self._policy_a, data.result_a, data.state_a, data.stats_a),
            cache_b=PolicySnapshot(self._policy_b, data.result_b, data.state_b, data.stats_b),
        )

    def get_comparison_summary(self) -> Dict:
        if self._history:
            final_a = self._history[-1].stats_a
            final_b = self._history[-1].stats_b
        else:
            final_a = self._initial_a[1]
            final_b = self._initial_b[1]
        return {
            'policy_a': self._policy_a,
            'policy_b': self._policy_b,
            'sequence_length': len(self._sequence),
            'final_stats': {'a': final_a, 'b': final_b},
        }


def describe_result(name: str, result: CacheResult) -> str:
    if result.hit:
        text = f"{name} HIT"
        if getattr(result, 'queue_transfer', False):
            text += " (A1->Am)"
        return text
    text = f"{name} MISS ({result.miss_type})"
    if result.evicted:
        text += f" evicted {result.evicted_value}"
        queue = getattr(result, 'evicted_from_queue', None)
        if queue:
            text += f" from {queue}"
    return text


def describe_step(step: ComparisonStep, names: Tuple[str, str]) -> str:
    """One log line for a step, numbered from 1."""
    return (
        f"Step {step.step_index + 1} access {step.access_value}: "
        f"{describe_result(names[0], step.result_a)} | {describe_result(names[1], step.result_b)}"
    )


__all__ = [
    "CompareController",
    "ComparisonStep",
    "Comparison",
    "PolicySnapshot",
    "describe_step",
    "describe_result",
]
