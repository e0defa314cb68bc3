from typing import List

from models import HealthSummary, PodRecord


def health_percentage(running: int, total: int) -> float:
    """
    Running share of all pods, floored to 2 decimals.

    Integer arithmetic keeps the floor exact (80.0, not 79.99). An empty
    cluster counts as fully healthy.
    """
    if total <= 0:
        return 100.0
    return (running * 10000 // total) / 100


def evaluate_health(pods: List[PodRecord], threshold: float) -> HealthSummary:
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) or not (0 < threshold <= 100):
        raise ValueError(f"health threshold must be in (0, 100], got {threshold!r}")

    total = len(pods)
    running = sum(1 for p in pods if p.status == 'Running')
    succeeded = sum(1 for p in pods if p.status == 'Succeeded')
    pct = health_percentage(running, total)
    return HealthSummary(
        total_pods=total,
        running_pods=running,
        succeeded_pods=succeeded,
        problematic_pods=total - running - succeeded,
        health_percentage=pct,
        health_threshold=float(threshold),
        is_healthy=pct >= threshold,
    )
