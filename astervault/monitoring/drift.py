"""Label-distribution drift scoring (KL divergence with epsilon smoothing)."""

import math

DEFAULT_EPSILON = 0.001
DEFAULT_THRESHOLD = 0.1


def label_distribution(counts: dict[str, int]) -> dict[str, float]:
    """Normalize label counts. An empty window yields an empty distribution."""
    total = sum(counts.values())
    if total <= 0:
        return {}
    return {label: count / total for label, count in counts.items()}


def kl_divergence(
    baseline: dict[str, float],
    current: dict[str, float],
    epsilon: float = DEFAULT_EPSILON,
) -> float:
    """KL(baseline || current) over the union of labels.

    Labels absent from a window contribute ``epsilon`` mass instead of zero.
    """
    score = 0.0
    for label in sorted(set(baseline) | set(current)):
        p = baseline.get(label) or epsilon
        q = current.get(label) or epsilon
        score += p * math.log(p / q)
    return score


def score_drift(
    baseline_counts: dict[str, int],
    current_counts: dict[str, int],
    threshold: float = DEFAULT_THRESHOLD,
    epsilon: float = DEFAULT_EPSILON,
) -> dict:
    baseline = label_distribution(baseline_counts)
    current = label_distribution(current_counts)
    score = kl_divergence(baseline, current, epsilon)
    return {
        "drift_detected": score > threshold,
        "drift_score": score,
        "baseline_distribution": baseline,
        "current_distribution": current,
    }
