"""
Score derivation.
Turns per-user activity counts into UserScore records and per-repository label totals.
"""
from typing import Dict, Iterable, Optional

from normalize.models import UserActivity, UserScore, LabelCounts
from .utils import load_weights, compute_weighted_score


def derive_score(activity: UserActivity, weights: Optional[Dict[str, int]] = None) -> UserScore:
    """
    Pure mapping from one contributor's activity to a score.
    The total is linear in the counts, so the scores of disjoint activity add up.
    """
    if weights is None:
        weights = load_weights()
    counts = activity.as_dict()
    total = compute_weighted_score(counts, weights)
    return UserScore(total=total, **counts)


def derive_scores(activities: Dict[str, UserActivity], weights: Optional[Dict[str, int]] = None) -> Dict[str, UserScore]:
    if weights is None:
        weights = load_weights()
    return {uid: derive_score(act, weights) for uid, act in activities.items()}


def compute_label_counts(activities: Iterable[UserActivity]) -> LabelCounts:
    counts = LabelCounts()
    for activity in activities:
        counts.add(activity)
    return counts
