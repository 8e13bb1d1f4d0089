"""
Occupancy Model Test Suite
==========================

Tests the live set estimator of NonEphemeralHeapUseModel against
synthetic occupancy signals fed through injected regions.
"""

import pytest

from heapwatcher.errors import RegionResolutionError
from heapwatcher.model import MB, NonEphemeralHeapUseModel
from heapwatcher.regions import CallableRegion, MemoryUsage


class FeedRegion(CallableRegion):
    """Region returning whatever sample was queued last"""

    def __init__(self, name: str = "G1 Old Gen"):
        super().__init__(name, self._next)
        self.sample = MemoryUsage(0, 0)

    def _next(self):
        return self.sample


def make_model(noise_mb: float = 10.0):
    region = FeedRegion()
    model = NonEphemeralHeapUseModel(noise_mb, regions=[region])
    return model, region


def feed(model, region, used: int, max_bytes: int = 1000):
    region.sample = MemoryUsage(used, max_bytes)
    model.update()


class TestPassThrough:

    def test_initial_values_are_zero(self):
        model, _ = make_model()
        assert model.get_current_used() == 0
        assert model.get_max_available() == 0
        assert model.get_estimated_live_set() == 0

    def test_current_and_max_follow_every_sample(self):
        model, region = make_model(noise_mb=1.0)
        samples = [(5, 100), (7, 100), (3 * int(MB), 50 * int(MB)), (4, 9)]
        for used, max_bytes in samples:
            feed(model, region, used, max_bytes)
            assert model.get_current_used() == used
            assert model.get_max_available() == max_bytes


class TestLiveSetEstimation:

    def test_cold_start_keeps_estimate_at_zero(self):
        model, region = make_model(noise_mb=0)
        for used in [10, 20, 30, 40, 50]:
            feed(model, region, used)
        assert model.get_estimated_live_set() == 0

    def test_falling_only_signal_keeps_estimate_at_zero(self):
        model, region = make_model(noise_mb=0)
        for used in [500, 400, 300, 200]:
            feed(model, region, used)
        assert model.get_estimated_live_set() == 0

    def test_trough_commits_value_before_the_rise(self):
        # One byte noise floor
        model, region = make_model(noise_mb=1.0 / MB)
        assert model.noise_filtering_level_bytes == 1

        expected = [0, 0, 0, 0, 0, 5, 5]
        for used, estimate in zip([100, 102, 40, 20, 5, 7, 50], expected):
            feed(model, region, used)
            assert model.get_estimated_live_set() == estimate

    def test_megabyte_scenario(self):
        model, region = make_model(noise_mb=10.0)
        for used_mb in [50, 80, 75, 40, 120]:
            feed(model, region, used_mb * int(MB), 1000 * int(MB))
        assert model.get_estimated_live_set() == 40 * int(MB)
        assert model.get_current_used() == 120 * int(MB)
        assert model.get_max_available() == 1000 * int(MB)

    def test_first_accepted_sample_cannot_be_a_trough(self):
        # The first accepted change is a rise from the initial zero level
        model, region = make_model(noise_mb=0)
        feed(model, region, 100)
        feed(model, region, 200)
        assert model.get_estimated_live_set() == 0

    def test_successive_troughs_replace_the_estimate(self):
        model, region = make_model(noise_mb=0)
        for used in [100, 30, 90, 60, 110]:
            feed(model, region, used)
        assert model.get_estimated_live_set() == 60

    def test_estimate_may_rise_with_the_live_set(self):
        model, region = make_model(noise_mb=0)
        for used in [100, 20, 100, 50, 100]:
            feed(model, region, used)
        assert model.get_estimated_live_set() == 50


class TestNoiseFiltering:

    def test_changes_within_floor_leave_estimate_unchanged(self):
        model, region = make_model(noise_mb=10.0)
        for used_mb in [100, 20, 100]:
            feed(model, region, used_mb * int(MB))
        assert model.get_estimated_live_set() == 20 * int(MB)

        base = 100 * int(MB)
        for jitter_mb in [5, -5, 9, -9, 0, 10, -10, 3]:
            feed(model, region, base + jitter_mb * int(MB))
            assert model.get_estimated_live_set() == 20 * int(MB)

    def test_small_dip_is_not_a_trough(self):
        model, region = make_model(noise_mb=10.0)
        for used_mb in [100, 95, 130]:
            feed(model, region, used_mb * int(MB))
        assert model.get_estimated_live_set() == 0

    def test_delta_equal_to_floor_is_noise(self):
        model, region = make_model(noise_mb=0)
        model.noise_filtering_level_bytes = 10
        for used in [100, 50, 60, 61]:
            feed(model, region, used)
        # 50 -> 60 is exactly the floor, 50 -> 61 exceeds it
        assert model.get_estimated_live_set() == 50

    def test_zero_floor_accepts_every_change(self):
        model, region = make_model(noise_mb=0)
        for used in [10, 9, 10]:
            feed(model, region, used)
        assert model.get_estimated_live_set() == 9

    def test_flat_signal_is_a_no_op(self):
        model, region = make_model(noise_mb=0)
        for used in [100, 50, 50, 50]:
            feed(model, region, used)
        assert model.get_estimated_live_set() == 0
        feed(model, region, 80)
        assert model.get_estimated_live_set() == 50

    def test_floor_change_applies_to_later_updates_only(self):
        model, region = make_model(noise_mb=10.0)
        for used_mb in [100, 50, 55]:
            feed(model, region, used_mb * int(MB))
        assert model.get_estimated_live_set() == 0

        model.set_noise_filtering_level_mb(1.0)
        assert model.get_estimated_live_set() == 0
        assert model.get_noise_filtering_level_mb() == 1.0

        # 50 is still the last accepted value; 53 is a rise of 3 MB
        feed(model, region, 53 * int(MB))
        assert model.get_estimated_live_set() == 50 * int(MB)

    def test_noise_level_converts_megabytes(self):
        model, _ = make_model(noise_mb=2.5)
        assert model.noise_filtering_level_bytes == int(2.5 * MB)
        assert model.get_noise_filtering_level_mb() == 2.5

    def test_negative_noise_level_is_rejected(self):
        model, _ = make_model()
        with pytest.raises(ValueError):
            model.set_noise_filtering_level_mb(-1.0)


class TestRegionResolution:

    def test_unrecognized_regions_fail_with_every_name(self):
        regions = [
            CallableRegion("Eden Space", lambda: (1, 2)),
            CallableRegion("Survivor Space", lambda: (1, 2)),
            CallableRegion("Metaspace", lambda: (1, 2)),
        ]
        with pytest.raises(RegionResolutionError) as excinfo:
            NonEphemeralHeapUseModel(10.0, regions=regions)

        message = str(excinfo.value)
        assert message.startswith("No recognized OldGen pool name found.")
        for name in ["Eden Space", "Survivor Space", "Metaspace"]:
            assert f"{name}\n" in message
        assert excinfo.value.available_names == ["Eden Space", "Survivor Space", "Metaspace"]

    def test_empty_region_set_fails(self):
        with pytest.raises(RegionResolutionError):
            NonEphemeralHeapUseModel(10.0, regions=[])

    def test_injected_region_bypasses_lookup(self):
        region = CallableRegion("anything", lambda: MemoryUsage(7, 9))
        model = NonEphemeralHeapUseModel(10.0, region=region)
        model.update()
        assert model.region is region
        assert model.get_current_used() == 7
        assert model.get_max_available() == 9

    def test_region_usage_does_not_update_model(self):
        region = CallableRegion("Tenured Gen", lambda: (123, 456))
        model = NonEphemeralHeapUseModel(10.0, regions=[region])
        assert model.get_region_usage() == MemoryUsage(123, 456)
        assert model.get_current_used() == 0
