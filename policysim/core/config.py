"""Default settings for the policy comparison engine.

Values here are the starting point for a comparison session; every one of
them can be overridden when the controller is constructed.
"""

# Policy identifiers (closed set)
POLICY_NAMES = ("FIFO", "LRU", "Clock", "Random", "Optimal", "2Q")

DEFAULT_POLICIES = ("LRU", "FIFO")
DEFAULT_CAPACITY = 4
DEFAULT_SEQUENCE_LENGTH = 10

# small alphabet relative to sequence length so we get a mix of hits and misses
DEFAULT_ALPHABET = ("A", "B", "C", "D", "E", "F", "G", "H", "I", "J")

# share of the capacity the A1 (seen-once) queue may hold before 2Q evicts from it
DEFAULT_A1_RATIO = 0.25

# Reasonable UI limits so users don't enter absurd numbers
MAX_CAPACITY = 16
MAX_SEQUENCE_LENGTH = 64

# shown for empty slots
EMPTY_SLOT_MARKER = "---"
