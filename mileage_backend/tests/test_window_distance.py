"""
Tests for segment building and window distance aggregation.
"""

import math
import random
import uuid
from datetime import timedelta

import pytest

from mileage_backend.app.core.mileage_config import MileageConfig
from mileage_backend.app.domain.mileage.sample_store import SampleStore
from mileage_backend.app.domain.mileage.segments import build_segments
from mileage_backend.app.domain.mileage.window_distance import (
    WindowDistanceAggregator, safe_distance_km, summarize_window
)
from mileage_backend.app.schemas.mileage import GpsSample
from mileage_backend.app.services.geo import haversine_distance_m, km_to_miles
from mileage_backend.tests.factories import T0, sample

DRIVER = uuid.UUID("6f1c2b9e-4c1d-4b51-9a57-3f8e2a0c7d11")


def summarize(samples, config=None):
    return summarize_window(samples, config or MileageConfig(), DRIVER, T0, T0 + timedelta(hours=1))


# Geodesic helper

def test_haversine_one_degree_of_latitude():
    assert haversine_distance_m(0.0, 0.0, 1.0, 0.0) == pytest.approx(111_194.93, rel=1e-6)


def test_haversine_same_point_is_zero():
    assert haversine_distance_m(37.77, -122.42, 37.77, -122.42) == 0.0


def test_km_to_miles():
    assert km_to_miles(1.609344) == pytest.approx(1.0)


# Segment builder

def test_segments_pair_time_adjacent_samples():
    segments = build_segments([sample(0, 0), sample(60, 500), sample(120, 1000)])

    assert len(segments) == 2
    assert segments[0].distance_m == pytest.approx(500.0)
    assert segments[0].elapsed_s == 60.0
    assert segments[1].started_at == T0 + timedelta(seconds=60)


def test_segments_are_built_in_time_order():
    segments = build_segments([sample(120, 1000), sample(0, 0), sample(60, 500)])

    assert [s.elapsed_s for s in segments] == [60.0, 60.0]
    assert all(s.distance_m == pytest.approx(500.0) for s in segments)


def test_first_sample_has_no_segment():
    assert build_segments([sample(0, 0)]) == []
    assert build_segments([]) == []


def test_segment_carries_endpoint_speed():
    segments = build_segments([sample(0, 0, speed=9.0), sample(60, 500, speed=0.1)])
    assert segments[0].source_speed == 0.1


# Pure window summary

def test_summary_sums_kept_segments_in_km():
    window = summarize([sample(0, 0), sample(60, 500), sample(120, 1000)])

    assert window.distance_km == pytest.approx(1.0)
    assert window.kept_segment_count == 2
    assert window.rejections == {}


def test_low_accuracy_sample_never_contributes():
    window = summarize([sample(0, 0), sample(60, 500), sample(120, 1000, accuracy=150.0)])

    assert window.distance_km == pytest.approx(0.5)
    assert window.raw_sample_count == 3
    assert window.accurate_sample_count == 2
    assert window.raw_segment_count == 2
    assert window.candidate_segment_count == 1
    assert window.accuracy_filter_rate == 0.5


def test_lone_low_accuracy_sample_counts_as_fully_filtered():
    window = summarize([sample(0, 0, accuracy=150.0)])

    assert window.raw_segment_count == 0
    assert window.accuracy_filter_rate == 1.0


def test_low_accuracy_sample_is_bridged_by_its_neighbours():
    # The middle fix is dropped before pairing, so first and last are joined
    window = summarize([sample(0, 0), sample(60, 450, accuracy=500.0), sample(120, 1000)])

    assert window.distance_km == pytest.approx(1.0)
    assert window.candidate_segment_count == 1


def test_600_kmh_segment_never_contributes():
    # 10 km in 60 s
    window = summarize([sample(0, 0), sample(60, 10_000)])

    assert window.distance_km == 0.0
    assert window.rejections == {"SPEED_CAP": 1}


def test_outlier_jump_is_counted():
    relaxed = MileageConfig(max_speed_kmh=10_000.0)
    window = summarize([sample(0, 0), sample(10, 6000), sample(70, 12_000)], relaxed)

    assert window.rejections == {"OUTLIER_JUMP": 1}
    assert window.distance_km == pytest.approx(6.0)


def test_stationary_jitter_is_ignored():
    window = summarize([sample(0, 0, speed=0.0), sample(30, 12, speed=0.1), sample(60, 4, speed=0.2)])

    assert window.distance_km == 0.0
    assert window.rejections == {"STATIONARY": 2}


def test_identical_timestamps_are_dropped():
    window = summarize([sample(0, 0), sample(0, 300), sample(0, 600)])

    assert window.distance_km == 0.0
    assert window.rejections == {"NON_POSITIVE_ELAPSED": 2}


@pytest.mark.parametrize("samples", [
    [],
    [sample(0, 0)],
    [sample(0, 0, accuracy=500.0), sample(60, 500, accuracy=500.0)],
])
def test_degenerate_windows_are_zero(samples):
    window = summarize(samples)
    assert window.distance_km == 0.0
    assert window.kept_segment_count == 0


def test_randomized_windows_are_finite_and_non_negative():
    rng = random.Random(20260302)

    for _ in range(200):
        count = rng.randint(0, 25)
        samples = [
            GpsSample(
                latitude=rng.uniform(-89.9, 89.9),
                longitude=rng.uniform(-180.0, 180.0),
                accuracy=rng.choice([None, rng.uniform(0.0, 300.0)]),
                speed=rng.choice([None, rng.uniform(0.0, 60.0)]),
                recorded_at=T0 + timedelta(seconds=rng.choice([0, rng.randint(-600, 3600)])),
            )
            for _ in range(count)
        ]
        window = summarize(samples)

        assert math.isfinite(window.distance_km)
        assert window.distance_km >= 0.0
        assert window.kept_segment_count <= window.candidate_segment_count <= window.raw_segment_count


@pytest.mark.parametrize("value", [float("nan"), float("inf"), -1.0])
def test_safe_distance_coerces_bad_values(value):
    assert safe_distance_km(value) == 0.0


# Aggregator against the store

@pytest.fixture
def aggregator(session_factory, config):
    return WindowDistanceAggregator(SampleStore(session_factory), config)


@pytest.mark.asyncio
async def test_aggregator_reads_only_the_drivers_samples(aggregator, seed):
    other_driver = uuid.uuid4()
    await seed.track(DRIVER, [(0, 0, 10.0, 5.0), (60, 500, 10.0, 5.0)])
    await seed.track(other_driver, [(0, 0, 10.0, 5.0), (60, 900, 10.0, 5.0)])

    window = await aggregator.measure(DRIVER, T0, T0 + timedelta(hours=1))

    assert window.distance_km == pytest.approx(0.5)
    assert window.raw_sample_count == 2


@pytest.mark.asyncio
async def test_aggregator_skips_soft_deleted_samples(aggregator, seed):
    await seed.track(DRIVER, [(0, 0, 10.0, 5.0), (60, 500, 10.0, 5.0)])
    await seed.track(DRIVER, [(120, 5000, 10.0, 5.0)], deleted=True)

    window = await aggregator.measure(DRIVER, T0, T0 + timedelta(hours=1))

    assert window.raw_sample_count == 2
    assert window.distance_km == pytest.approx(0.5)


@pytest.mark.asyncio
async def test_aggregator_window_bounds_are_inclusive(aggregator, seed):
    await seed.track(DRIVER, [
        (0, 0, 10.0, 5.0),
        (60, 500, 10.0, 5.0),
        (120, 1000, 10.0, 5.0),
        (180, 1500, 10.0, 5.0),
    ])

    window = await aggregator.measure(DRIVER, T0 + timedelta(seconds=60), T0 + timedelta(seconds=120))

    assert window.raw_sample_count == 2
    assert window.distance_km == pytest.approx(0.5)


@pytest.mark.asyncio
async def test_aggregator_empty_window_does_not_query(config, mocker):
    store = mocker.MagicMock(spec=SampleStore)
    aggregator = WindowDistanceAggregator(store, config)

    window = await aggregator.measure(DRIVER, T0, T0)

    assert window.distance_km == 0.0
    store.fetch_samples.assert_not_called()


@pytest.mark.asyncio
async def test_aggregator_without_samples_is_zero(aggregator):
    window = await aggregator.measure(DRIVER, T0, T0 + timedelta(hours=1))

    assert window.distance_km == 0.0
    assert window.raw_sample_count == 0
