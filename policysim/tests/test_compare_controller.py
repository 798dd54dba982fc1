"""Tests for the comparison controller: trace building, navigation and
reconfiguration.
"""

import pytest
from policysim.core.compare_controller import CompareController, describe_step
from policysim.core.config import DEFAULT_ALPHABET, DEFAULT_CAPACITY
from policysim.core.results import ClockDisplayItem


def test_trace_is_built_eagerly():
    ctl = CompareController('FIFO', 'LRU', capacity=3, custom_sequence=['A', 'B', 'C', 'A', 'D'])
    assert ctl.get_current_step() == -1
    assert ctl.get_max_step() == 4
    history = ctl.get_step_history()
    assert len(history) == 5
    last = history[-1]
    # FIFO evicts the oldest insert, LRU the least recently touched
    assert last.result_a.evicted_value == 'A'
    assert last.result_b.evicted_value == 'B'
    assert last.stats_a.total_accesses == 5


def test_navigation_bounds():
    ctl = CompareController('FIFO', 'LRU', capacity=2, custom_sequence=['A', 'B', 'C'])
    # stepping back before the start fails and leaves the cursor alone
    assert ctl.step_backward() is False
    assert ctl.get_current_step() == -1

    assert ctl.step_forward() is True
    assert ctl.step_forward() is True
    assert ctl.step_forward() is True
    assert ctl.get_current_step() == 2
    assert ctl.step_forward() is False
    assert ctl.get_current_step() == 2

    assert ctl.step_backward() is True
    assert ctl.get_current_step() == 1


def test_jump_to_step():
    ctl = CompareController('Clock', 'Random', capacity=2, custom_sequence=['A', 'B', 'C'], seed=1)
    assert ctl.jump_to_step(2) is True
    assert ctl.get_current_access_value() == 'C'
    assert ctl.jump_to_step(-1) is True
    assert ctl.get_current_access_value() is None
    for bad in (-2, 3, 100):
        assert ctl.jump_to_step(bad) is False
        assert ctl.get_current_step() == -1
    # bools are not step indexes
    assert ctl.jump_to_step(True) is False
    assert ctl.get_current_step() == -1


def test_backward_matches_forward():
    ctl = CompareController('LRU', 'Optimal', capacity=3, sequence_length=12, seed=5)
    forward = []
    while ctl.step_forward():
        forward.append(ctl.get_current_comparison())
    backward = []
    for _ in range(len(forward)):
        backward.append(ctl.get_current_comparison())
        ctl.step_backward()
    assert list(reversed(backward)) == forward
    assert ctl.get_current_step() == -1


def test_reset_keeps_trace():
    ctl = CompareController('FIFO', '2Q', capacity=2, custom_sequence=['A', 'A', 'B'])
    history = ctl.get_step_history()
    ctl.jump_to_step(2)
    ctl.reset()
    assert ctl.get_current_step() == -1
    assert ctl.get_step_history() == history


def test_empty_comparison_before_first_access():
    ctl = CompareController('Clock', 'LRU', capacity=3, custom_sequence=['A', 'B'])
    cmp = ctl.get_current_comparison()
    assert cmp.step == -1
    assert cmp.access_value is None
    for snap, name in ((cmp.cache_a, 'Clock'), (cmp.cache_b, 'LRU')):
        assert snap.name == name
        assert snap.result is None
        assert snap.stats.total_accesses == 0
        assert snap.stats.hits == 0 and snap.stats.misses == 0
        assert snap.stats.capacity == 3
        assert snap.state.values == (None, None, None)
        assert len(snap.state.display_info) == 3
    # the clock hand starts at slot 0
    assert isinstance(cmp.cache_a.state.display_info[0], ClockDisplayItem)
    assert cmp.cache_a.state.display_info[0].is_clock_hand


def test_current_comparison_tracks_cursor():
    ctl = CompareController('FIFO', 'LRU', capacity=2, custom_sequence=['A', 'B', 'A'])
    ctl.jump_to_step(2)
    cmp = ctl.get_current_comparison()
    assert cmp.step == 2
    assert cmp.access_value == 'A'
    assert cmp.cache_a.result.hit and cmp.cache_b.result.hit
    assert cmp.cache_a.stats.hits == 1
    assert ctl.get_current_step_data().step_index == 2


def test_update_policies_keeps_sequence():
    ctl = CompareController('FIFO', 'LRU', capacity=3, sequence_length=10, seed=11)
    seq = ctl.get_access_sequence()
    ctl.jump_to_step(4)
    ctl.update_policies('Optimal', 'Clock')
    assert ctl.get_access_sequence() == seq
    assert ctl.get_policy_names() == ('Optimal', 'Clock')
    assert ctl.get_current_step() == 4
    assert ctl.get_current_comparison().cache_a.name == 'Optimal'
    # the rebuilt Optimal trace replays the unchanged sequence
    assert [s.access_value for s in ctl.get_step_history()] == seq


def test_generate_new_sequence():
    ctl = CompareController('FIFO', 'LRU', capacity=3, sequence_length=5, seed=2)
    ctl.jump_to_step(3)
    ctl.generate_new_sequence(8)
    assert ctl.get_current_step() == -1
    assert ctl.get_max_step() == 7
    assert len(ctl.get_step_history()) == 8
    assert all(k in DEFAULT_ALPHABET for k in ctl.get_access_sequence())


def test_set_custom_sequence():
    ctl = CompareController('Optimal', '2Q', capacity=2, sequence_length=5, seed=2)
    ctl.step_forward()
    ctl.set_custom_sequence(['X', 'Y', 'X', 'Z'])
    assert ctl.get_current_step() == -1
    assert ctl.get_access_sequence() == ['X', 'Y', 'X', 'Z']
    last = ctl.get_step_history()[-1]
    # Optimal: neither X nor Y is used again, so slot 0 (X) goes
    assert last.result_a.evicted_value == 'X'


def test_set_capacity_rebuilds():
    ctl = CompareController('FIFO', 'LRU', capacity=2, custom_sequence=['A', 'B', 'C', 'A'])
    assert ctl.get_step_history()[-1].result_a.hit is False
    ctl.set_capacity(3)
    assert ctl.get_capacity() == 3
    assert ctl.get_step_history()[-1].result_a.hit is True


def test_empty_custom_sequence():
    ctl = CompareController('FIFO', 'LRU', custom_sequence=[])
    assert ctl.get_max_step() == -1
    assert ctl.step_forward() is False
    assert ctl.get_current_comparison().step == -1
    summary = ctl.get_comparison_summary()
    assert summary['sequence_length'] == 0
    assert summary['final_stats']['a'].total_accesses == 0


def test_configuration_errors_are_raised():
    with pytest.raises(ValueError):
        CompareController('LFU', 'LRU')
    with pytest.raises(ValueError):
        CompareController('FIFO', 'LRU', capacity=0)
    with pytest.raises(ValueError):
        CompareController('FIFO', 'LRU', sequence_length=-1)
    ctl = CompareController('FIFO', 'LRU', capacity=2, custom_sequence=['A'])
    with pytest.raises(ValueError):
        ctl.update_policies('FIFO', 'Nope')
    # a rejected change leaves the session as it was
    assert ctl.get_policy_names() == ('FIFO', 'LRU')
    with pytest.raises(ValueError):
        ctl.set_capacity(-3)
    assert ctl.get_capacity() == 2


def test_seeded_sessions_are_reproducible():
    a = CompareController('Random', 'Random', capacity=3, sequence_length=20, seed=99)
    b = CompareController('Random', 'Random', capacity=3, sequence_length=20, seed=99)
    assert a.get_access_sequence() == b.get_access_sequence()
    assert a.get_step_history() == b.get_step_history()


def test_defaults():
    ctl = CompareController(seed=0)
    assert ctl.get_policy_names() == ('LRU', 'FIFO')
    assert ctl.get_capacity() == DEFAULT_CAPACITY
    assert ctl.get_max_step() == 9


def test_comparison_summary_and_description():
    ctl = CompareController('FIFO', 'LRU', capacity=3, custom_sequence=['A', 'B', 'C', 'A', 'D'])
    summary = ctl.get_comparison_summary()
    assert summary['policy_a'] == 'FIFO'
    assert summary['sequence_length'] == 5
    assert summary['final_stats']['a'].hits == 1
    line = describe_step(ctl.get_step_history()[-1], ctl.get_policy_names())
    assert line == "Step 5 access D: FIFO MISS (cold) evicted A | LRU MISS (cold) evicted B"


def test_recorded_trace_cannot_be_changed_by_callers():
    # Input: Clock vs 2Q, capacity 2, [A,B,C]; the hand sits on slot 1 after C evicts A
    # Expected: stats extras are read-only, the trace stays as recorded and every record hashes
    ctl = CompareController('Clock', '2Q', capacity=2, custom_sequence=['A', 'B', 'C'])
    ctl.jump_to_step(2)
    history = ctl.get_step_history()
    stats = ctl.get_current_comparison().cache_a.stats
    assert stats.extra['clock_hand'] == 1
    with pytest.raises(TypeError):
        stats.extra['clock_hand'] = 99
    # as_dict hands out a copy
    exported = stats.as_dict()
    exported['clock_hand'] = 99
    assert ctl.get_current_comparison().cache_a.stats.extra['clock_hand'] == 1
    assert ctl.get_step_history() == history
    for step in history:
        hash(step)
    hash(ctl.get_current_comparison())
    assert ctl.get_current_comparison().cache_b.stats.extra['a1_threshold'] == 1


def test_digit_keys_name_the_same_page():
    ctl = CompareController('FIFO', 'LRU', capacity=2, custom_sequence=['1', 1])
    assert ctl.get_access_sequence() == [1, 1]
    assert ctl.get_step_history()[-1].result_a.hit is True
