"""Entry point for the replacement policy comparison engine.

Usage:
    python run.py           # compares LRU and FIFO on the Belady example
    python run.py --all     # prints final miss counts for every policy

There is no GUI here; the engine is meant to be driven by a presentation
layer through policysim.simulation.Simulation or CompareController.
"""
import sys

from policysim.core.compare_controller import CompareController, describe_step
from policysim.core.config import POLICY_NAMES
from policysim.core.display import format_state
from policysim.core.sequence import SCENARIOS


def headless_test():
    # Simple scenario to validate the comparison logic
    seq = SCENARIOS['Belady Example']
    ctl = CompareController('LRU', 'FIFO', capacity=3, custom_sequence=seq)
    names = ctl.get_policy_names()
    while ctl.step_forward():
        data = ctl.get_current_step_data()
        print(describe_step(data, names))
        print('   ', names[0], format_state(data.state_a))
        print('   ', names[1], format_state(data.state_b))
    summary = ctl.get_comparison_summary()
    for key, name in (('a', names[0]), ('b', names[1])):
        s = summary['final_stats'][key]
        print(f"{name}: accesses={s.total_accesses} hits={s.hits} misses={s.misses} hit rate={s.hit_rate:.3f}")


def all_policies():
    seq = SCENARIOS['Belady Example']
    for name in POLICY_NAMES:
        ctl = CompareController(name, 'Optimal', capacity=3, custom_sequence=seq, seed=0)
        s = ctl.get_comparison_summary()['final_stats']['a']
        print(f"{name:8s} misses={s.misses} (cold {s.cold_misses}, capacity {s.capacity_misses})")


def main():
    if '--all' in sys.argv:
        all_policies()
    else:
        headless_test()


if __name__ == '__main__':
    main()
