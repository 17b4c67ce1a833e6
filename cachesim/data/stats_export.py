"""Statistics and exporter.
"""
import csv
import json
from typing import Dict, List, Optional, Sequence


def export_chart_json(histories: Dict[str, List[float]], stats: Dict[str, Dict[str, float]], fpath: str) -> str:
    """Export hit-ratio histories and per-cache stats to a JSON file. Returns the saved path.
    """
    data = {
        'hit_rate_history': {name: list(history) for name, history in histories.items()},
        'stats': stats,
    }
    with open(fpath, 'w', encoding='utf-8') as fh:
        json.dump(data, fh, indent=2)
    return fpath


def export_chart_pdf(histories: Dict[str, List[float]], fpath: str) -> Optional[str]:
    """Render the hit-ratio history of each cache to a PDF using matplotlib.
    Returns the saved file path, or None when there is nothing to plot.
    """
    if not any(histories.values()):
        return None

    # Use matplotlib without a display
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(6, 2.5))
    for name, history in histories.items():
        data = list(history)
        if not data:
            continue
        ax.plot(range(len(data)), data, linewidth=2, label=name)
    ax.set_ylim(0, 1)
    ax.set_xlabel('Access')
    ax.set_ylabel('Hit rate')
    ax.legend(loc='lower right')
    fig.tight_layout()
    fig.savefig(fpath, format='pdf', dpi=150)
    plt.close(fig)
    return fpath


class Statistics:
    def __init__(self, track_history: bool = False):
        # the per-access hit-rate history is only kept when an export needs it
        self.track_history = track_history
        self.reset()

    def reset(self):
        # counters start from zero
        self.reads = 0
        self.writes = 0
        self.hits = 0
        self.misses = 0
        self.hit_rate_history: List[float] = []

    def record_read(self):
        self.reads += 1

    def record_write(self):
        self.writes += 1

    def record_lookup(self, hit: bool):
        # called once per read/write/fetch, after the counter above
        if hit:
            self.hits += 1
        else:
            self.misses += 1
        if self.track_history:
            self.hit_rate_history.append(self.hit_rate)

    @property
    def accesses(self):
        return self.hits + self.misses

    @property
    def hit_rate(self):
        return (self.hits / self.accesses) if self.accesses else 0.0

    @property
    def hit_ratio_percent(self):
        return 100.0 * self.hit_rate

    def as_dict(self) -> Dict[str, float]:
        return {
            'reads': self.reads,
            'writes': self.writes,
            'hits': self.hits,
            'misses': self.misses,
            'hit_ratio': self.hit_ratio_percent,
        }


class Exporter:
    @staticmethod
    def export_stats_csv(path: str, caches: Sequence):
        """Write one row per cache: name followed by its counters."""
        with open(path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(['cache', 'reads', 'writes', 'hits', 'misses', 'hit_ratio'])
            for cache in caches:
                s = cache.stats
                writer.writerow([
                    cache.name, s.reads, s.writes, s.hits, s.misses, f"{s.hit_ratio_percent:.2f}"
                ])
        return path

    @staticmethod
    def export_stats_json(path: str, caches: Sequence):
        histories = {cache.name: cache.stats.hit_rate_history for cache in caches}
        stats = {cache.name: cache.stats.as_dict() for cache in caches}
        return export_chart_json(histories, stats, path)

    @staticmethod
    def export_hit_rate_chart(path: str, caches: Sequence):
        return export_chart_pdf({cache.name: cache.stats.hit_rate_history for cache in caches}, path)
