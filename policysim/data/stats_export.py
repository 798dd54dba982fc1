"""Statistics and exporter.
"""
import csv
import json
from typing import List, Optional

from policysim.core.results import CacheStats


class Statistics:
    """Mutable access counters owned by a single policy instance."""

    def __init__(self):
        self.reset()

    def reset(self):
        # counters start from zero
        self.accesses = 0
        self.hits = 0
        self.misses = 0
        self.cold_misses = 0
        self.capacity_misses = 0

    def record_hit(self):
        self.accesses += 1
        self.hits += 1

    def record_miss(self, cold: bool):
        self.accesses += 1
        self.misses += 1
        if cold:
            self.cold_misses += 1
        else:
            self.capacity_misses += 1

    @property
    def hit_rate(self):
        return (self.hits / self.accesses) if self.accesses else 0.0

    @property
    def miss_rate(self):
        return (self.misses / self.accesses) if self.accesses else 0.0

    def snapshot(self, capacity: int, occupancy: int, unique_seen: int, **extra) -> CacheStats:
        return CacheStats(
            total_accesses=self.accesses,
            hits=self.hits,
            misses=self.misses,
            cold_misses=self.cold_misses,
            capacity_misses=self.capacity_misses,
            capacity=capacity,
            occupancy=occupancy,
            unique_values_seen=unique_seen,
            extra_items=tuple(sorted(extra.items())),
        )


def hit_rate_history(controller, which: str = 'a') -> List[float]:
    """Cumulative hit rate after every step for policy 'a' or 'b'."""
    if which not in ('a', 'b'):
        raise ValueError(f"which must be 'a' or 'b', got {which!r}")
    history = []
    for step in controller.get_step_history():
        stats = step.stats_a if which == 'a' else step.stats_b
        history.append(stats.hit_rate)
    return history


def export_comparison_json(controller, fpath: str) -> Optional[str]:
    """Export the comparison summary and both hit-rate histories to a JSON file.
    Returns saved path or None if the file could not be written.
    """
    summary = controller.get_comparison_summary()
    data = {
        'policy_a': summary['policy_a'],
        'policy_b': summary['policy_b'],
        'capacity': controller.get_capacity(),
        'sequence': [str(k) for k in controller.get_access_sequence()],
        'final_stats': {
            'a': summary['final_stats']['a'].as_dict(),
            'b': summary['final_stats']['b'].as_dict(),
        },
        'hit_rate_history': {
            'a': hit_rate_history(controller, 'a'),
            'b': hit_rate_history(controller, 'b'),
        },
    }
    try:
        with open(fpath, 'w', encoding='utf-8') as fh:
            json.dump(data, fh, indent=2)
    except OSError:
        return None
    return fpath


def export_hit_rate_chart_pdf(controller, fpath: str) -> Optional[str]:
    """Render both policies' hit-rate history to a PDF using matplotlib.
    Returns the saved file path or None on failure.
    """
    # Use matplotlib
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    names = controller.get_policy_names()
    data_a = hit_rate_history(controller, 'a') or [0]
    data_b = hit_rate_history(controller, 'b') or [0]
    fig, ax = plt.subplots(figsize=(6, 2))
    ax.plot(range(len(data_a)), data_a, color='#FFA500', linewidth=2, label=names[0])
    ax.plot(range(len(data_b)), data_b, color='#6874E8', linewidth=2, label=names[1])
    ax.fill_between(range(len(data_a)), data_a, color='#FFA500', alpha=0.1)
    ax.set_ylim(0, 1)
    ax.set_xlabel('Step')
    ax.set_ylabel('Hit rate')
    ax.legend(loc='lower right', fontsize='small')
    ax.grid(False)
    fig.tight_layout()
    try:
        fig.savefig(fpath, format='pdf', dpi=150)
    except OSError:
        return None
    finally:
        plt.close(fig)
    return fpath


class Exporter:
    @staticmethod
    def export_comparison_csv(path: str, controller):
        # one row per step with both policies side by side
        name_a, name_b = controller.get_policy_names()
        with open(path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow([
                'step', 'access',
                f'{name_a}_hit', f'{name_a}_evicted', f'{name_a}_hit_rate',
                f'{name_b}_hit', f'{name_b}_evicted', f'{name_b}_hit_rate',
            ])
            for step in controller.get_step_history():
                writer.writerow([
                    step.step_index, step.access_value,
                    step.result_a.hit, '' if step.result_a.evicted_value is None else step.result_a.evicted_value,
                    step.stats_a.hit_rate,
                    step.result_b.hit, '' if step.result_b.evicted_value is None else step.result_b.evicted_value,
                    step.stats_b.hit_rate,
                ])
