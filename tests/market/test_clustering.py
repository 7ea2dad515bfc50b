"""Tests for behavioural clustering of markets."""

from __future__ import annotations

import pytest

from polymarket_analytics.market.clustering import (
    CLUSTER_CENTROIDS,
    BehaviorClusterClassifier,
    cluster_description,
)
from polymarket_analytics.market.models import BehaviorCluster, BehaviorDimensions


def _dims(values: tuple[float, float, float, float, float]) -> BehaviorDimensions:
    return BehaviorDimensions(*values)


class TestBehaviorClusterClassifier:
    @pytest.mark.parametrize("cluster", list(BehaviorCluster))
    def test_centroid_maps_to_itself(self, cluster: BehaviorCluster) -> None:
        result = BehaviorClusterClassifier().classify(_dims(CLUSTER_CENTROIDS[cluster]))

        assert result.cluster is cluster
        assert result.confidence == pytest.approx(1.0)
        assert result.distances[cluster.value] == pytest.approx(0.0, abs=1e-3)
        assert result.description == cluster_description(cluster)

    def test_equidistant_point_has_half_confidence(self) -> None:
        midpoint = (0.25, 0.45, 0.7, 0.725, 0.3)
        result = BehaviorClusterClassifier().classify(_dims(midpoint))

        assert result.cluster in (BehaviorCluster.STABLE_LIQUID, BehaviorCluster.LONG_HORIZON)
        assert result.confidence == pytest.approx(0.5)

    def test_distances_cover_every_cluster(self) -> None:
        result = BehaviorClusterClassifier().classify(_dims((0.5, 0.5, 0.5, 0.5, 0.5)))
        assert set(result.distances) == {c.value for c in BehaviorCluster}
        assert all(d >= 0 for d in result.distances.values())

    def test_confidence_in_unit_interval(self) -> None:
        classifier = BehaviorClusterClassifier()
        for v in (0.0, 0.3, 0.6, 1.0):
            result = classifier.classify(_dims((v, 1 - v, v, 1 - v, v)))
            assert 0.5 <= result.confidence <= 1.0

    def test_near_volatile_point(self) -> None:
        result = BehaviorClusterClassifier().classify(_dims((0.85, 0.6, 0.4, 0.3, 0.8)))
        assert result.cluster is BehaviorCluster.VOLATILE_SPECULATIVE
        assert result.confidence > 0.5

    def test_requires_two_centroids(self) -> None:
        with pytest.raises(ValueError):
            BehaviorClusterClassifier(centroids={BehaviorCluster.STABLE_LIQUID: (0, 0, 0, 0, 0)})

    def test_custom_centroids(self) -> None:
        classifier = BehaviorClusterClassifier(
            centroids={
                BehaviorCluster.STABLE_LIQUID: (0.0, 0.0, 0.0, 0.0, 0.0),
                BehaviorCluster.EVENT_BINARY: (1.0, 1.0, 1.0, 1.0, 1.0),
            }
        )
        result = classifier.classify(_dims((0.9, 0.9, 0.9, 0.9, 0.9)))
        assert result.cluster is BehaviorCluster.EVENT_BINARY
        assert set(result.distances) == {"stable_liquid", "event_binary"}


class TestClusterWhyBullets:
    def test_centroid_bullets(self) -> None:
        centroid = CLUSTER_CENTROIDS[BehaviorCluster.STABLE_LIQUID]
        result = BehaviorClusterClassifier().classify(_dims(centroid))

        nearest, runner_up, separation = result.why_bullets
        assert nearest.text == "Closest to the Stable & Liquid profile"
        assert nearest.value == pytest.approx(0.0)
        assert nearest.comparison == "stable_liquid"
        assert runner_up.metric == "Distance to runner-up"
        assert runner_up.value > 0
        assert separation.value == 100
        assert separation.unit == "%"

    def test_runner_up_matches_second_smallest_distance(self) -> None:
        result = BehaviorClusterClassifier().classify(_dims((0.6, 0.5, 0.5, 0.4, 0.6)))

        second = sorted(result.distances.values())[1]
        assert result.why_bullets[1].value == pytest.approx(second, abs=1e-3)

    def test_to_dict_includes_why_bullets(self) -> None:
        data = BehaviorClusterClassifier().classify(_dims((0.5, 0.5, 0.5, 0.5, 0.5))).to_dict()
        assert len(data["why_bullets"]) == 3  # type: ignore[arg-type]
