"""Access sequence helpers.

Generates the sequence of keys every policy in a comparison is driven with,
parses sequences typed by a user, and holds a few fixed scenarios.
"""
import random
from typing import Iterable, List, Optional, Sequence, Union

from policysim.core.config import DEFAULT_ALPHABET, DEFAULT_SEQUENCE_LENGTH
from policysim.core.results import Key

# Fixed scenarios (users cannot edit these sequences).
SCENARIOS = {
    # textbook sequence used to introduce Belady's algorithm
    'Belady Example': [7, 0, 1, 2, 0, 3, 0, 4, 2, 3, 0, 3, 2],
    # a hot pair interrupted by a one-time scan; 2Q keeps the hot pair
    'Scan Pollution': ['A', 'B', 'A', 'B', 'C', 'D', 'E', 'F', 'A', 'B'],
    # loop one larger than a 4-slot cache; LRU and FIFO miss every time
    'Loop': ['A', 'B', 'C', 'D', 'E'] * 3,
}


def generate_sequence(
    length: int = DEFAULT_SEQUENCE_LENGTH,
    alphabet: Sequence[Key] = DEFAULT_ALPHABET,
    rng: Optional[Union[random.Random, int]] = None,
) -> List[Key]:
    """Draw `length` keys uniformly from `alphabet`.

    `rng` may be a random.Random instance or an int seed; None uses a fresh
    unseeded generator.
    """
    length = int(length)
    if length < 0:
        raise ValueError(f"sequence length must be >= 0, got {length}")
    if not alphabet:
        raise ValueError("alphabet must contain at least one key")
    if not isinstance(rng, random.Random):
        rng = random.Random(rng)
    alphabet = list(alphabet)
    return [rng.choice(alphabet) for _ in range(length)]


def _parse_token(token: str) -> Key:
    # plain digit strings become ints so "1" and 1 are the same page
    if token.isdigit():
        return int(token)
    return token


def parse_sequence(text: str) -> List[Key]:
    """Split a comma/whitespace separated string into keys, skipping blanks."""
    tokens = text.replace(',', ' ').split()
    return [_parse_token(t) for t in tokens]


def normalize_sequence(keys: Iterable[Key]) -> List[Key]:
    """Copy a caller-supplied sequence, rejecting empty / unhashable keys.

    Digit strings become ints with the same rule as parse_sequence, so
    "1" and 1 name the same page.
    """
    out = []
    for k in keys:
        if k is None or k == '':
            raise ValueError("sequence keys must not be empty")
        hash(k)
        if isinstance(k, str):
            k = _parse_token(k)
        out.append(k)
    return out


__all__ = ["SCENARIOS", "generate_sequence", "parse_sequence", "normalize_sequence"]
