"""Nearest-centroid behavioural clustering of markets.

Centroids are analyst-defined constants rather than fitted parameters.
Distances are Euclidean over the five behavioural dimensions.
"""

from __future__ import annotations

import logging

import numpy as np
from sklearn.metrics.pairwise import euclidean_distances

from polymarket_analytics.evidence import WhyBullet, WhyBullets, pad_or_trim_why_bullets, round_half_up
from polymarket_analytics.market.models import BehaviorCluster, BehaviorDimensions, ClusterResult

logger = logging.getLogger(__name__)

# (volatility, momentum, liquidity_profile, time_horizon, event_sensitivity)
CLUSTER_CENTROIDS: dict[BehaviorCluster, tuple[float, float, float, float, float]] = {
    BehaviorCluster.STABLE_LIQUID: (0.2, 0.5, 0.9, 0.5, 0.3),
    BehaviorCluster.VOLATILE_SPECULATIVE: (0.9, 0.6, 0.4, 0.3, 0.8),
    BehaviorCluster.TRENDING_MOMENTUM: (0.5, 0.9, 0.6, 0.4, 0.5),
    BehaviorCluster.ILLIQUID_NICHE: (0.4, 0.3, 0.1, 0.6, 0.4),
    BehaviorCluster.EVENT_BINARY: (0.7, 0.4, 0.5, 0.2, 0.95),
    BehaviorCluster.LONG_HORIZON: (0.3, 0.4, 0.5, 0.95, 0.3),
}

CLUSTER_DESCRIPTIONS: dict[BehaviorCluster, str] = {
    BehaviorCluster.STABLE_LIQUID: "High liquidity market with stable price action. Good for larger positions.",
    BehaviorCluster.VOLATILE_SPECULATIVE: "High volatility, event-driven market. Expect rapid price swings.",
    BehaviorCluster.TRENDING_MOMENTUM: "Market showing strong directional movement. May continue trending.",
    BehaviorCluster.ILLIQUID_NICHE: "Low liquidity specialized market. Expect wider spreads and slippage.",
    BehaviorCluster.EVENT_BINARY: "Binary outcome tied to specific event. Price will resolve sharply.",
    BehaviorCluster.LONG_HORIZON: "Long resolution timeframe. Gradual price discovery expected.",
}


def cluster_description(cluster: BehaviorCluster) -> str:
    return CLUSTER_DESCRIPTIONS[cluster]


class BehaviorClusterClassifier:
    """Assigns a market to its nearest behavioural centroid.

    Confidence is ``1 - d1 / (d1 + d2)`` where d1 and d2 are the distances to
    the nearest and second-nearest centroids: 0.5 when tied, 1.0 when the
    point sits on a centroid.
    """

    def __init__(
        self,
        *,
        centroids: dict[BehaviorCluster, tuple[float, float, float, float, float]] | None = None,
    ) -> None:
        table = centroids or CLUSTER_CENTROIDS
        if len(table) < 2:
            raise ValueError("At least two centroids are required")
        self._clusters = tuple(table)
        self._matrix = np.array([table[c] for c in self._clusters], dtype=float)

    def distances(self, dims: BehaviorDimensions) -> np.ndarray:
        point = np.array([dims.as_vector()], dtype=float)
        return euclidean_distances(point, self._matrix)[0]

    def classify(self, dims: BehaviorDimensions) -> ClusterResult:
        dists = self.distances(dims)
        order = np.argsort(dists, kind="stable")
        nearest = self._clusters[int(order[0])]
        runner_up = self._clusters[int(order[1])]
        d1 = float(dists[order[0]])
        d2 = float(dists[order[1]])

        total = d1 + d2
        confidence = 1.0 - d1 / total if total > 0 else 1.0

        logger.debug("Behaviour cluster=%s d1=%.4f d2=%.4f", nearest.value, d1, d2)
        return ClusterResult(
            cluster=nearest,
            confidence=round_half_up(confidence, 2),
            distances={c.value: round_half_up(float(d), 3) for c, d in zip(self._clusters, dists)},
            description=CLUSTER_DESCRIPTIONS.get(nearest, ""),
            why_bullets=_why_bullets(nearest, d1, runner_up, d2, confidence),
        )


def _why_bullets(
    nearest: BehaviorCluster,
    d1: float,
    runner_up: BehaviorCluster,
    d2: float,
    confidence: float,
) -> WhyBullets:
    bullets = [
        WhyBullet(
            text=f"Closest to the {nearest.display_label} profile",
            metric="Distance to nearest",
            value=round_half_up(d1, 3),
            comparison=nearest.value,
        ),
        WhyBullet(
            text=f"Next closest is {runner_up.display_label}",
            metric="Distance to runner-up",
            value=round_half_up(d2, 3),
            comparison=runner_up.value,
        ),
        WhyBullet(
            text="Separation between the two closest profiles",
            metric="Confidence",
            value=round_half_up(confidence * 100),
            unit="%",
        ),
    ]
    return pad_or_trim_why_bullets(bullets, bullets[-1])
