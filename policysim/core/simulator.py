"""PolicySimulator feeds an access sequence into one replacement policy.
Each step records the policy's result, its display state and a stats snapshot.
"""
from dataclasses import dataclass
from typing import List, Optional

from policysim.core.display import CacheState, capture_state
from policysim.core.replacement_policies import ReplacementPolicy
from policysim.core.results import CacheResult, CacheStats, Key


@dataclass(frozen=True)
class PolicyStep:
    index: int
    key: Key
    result: CacheResult
    state: CacheState
    stats: CacheStats


class PolicySimulator:
    def __init__(self, policy: ReplacementPolicy):
        self.policy = policy
        self.sequence: List[Key] = []
        self.index = 0

    def load_sequence(self, keys: List[Key]):
        self.sequence = list(keys)
        self.index = 0

    def has_next(self) -> bool:
        return self.index < len(self.sequence)

    def step(self) -> Optional[PolicyStep]:
        if not self.has_next():
            return None
        key = self.sequence[self.index]
        result = self.policy.check_cache(key)
        record = PolicyStep(
            index=self.index,
            key=key,
            result=result,
            state=capture_state(self.policy),
            stats=self.policy.get_stats(),
        )
        self.index += 1
        return record

    def run_all(self) -> List[PolicyStep]:
        trace = []
        while self.has_next():
            info = self.step()
            trace.append(info)
        return trace
