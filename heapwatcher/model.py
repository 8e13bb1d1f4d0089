"""
Non-Ephemeral Heap Use Model
============================

A model of the stable (non-ephemeral, non-temporary) use of a managed heap.

In any collector, generational or not, the stable set of live objects
eventually makes it into the oldest generation. The model therefore
ignores every younger region and reports, for the oldest generation:

- the current use level and the maximum capacity, read directly from
  the latest sample
- an estimated live set: the most recent established local minimum of
  the use level, i.e. a level lower than the accepted levels before it
  AND the accepted level after it

Small changes between consecutive samples are treated as noise so that
allocation jitter cannot fake a direction change. The filter is a single
pass over the samples with O(1) state: the last accepted value and the
direction of the last accepted change.

The model needs regular calls to update(). The update interval should be
a fraction of the typical start-to-start interval between oldest
generation collections; 1 second or less comfortably suffices in most
systems, and coarser sampling can miss short-lived troughs.

The model is not synchronized. Exactly one caller may update it; any
number of threads may read the getters, without a cross-field snapshot.
"""

from typing import Iterable, Optional

from .regions import MemoryRegion, MemoryUsage, find_old_generation


MB = 1024.0 * 1024.0
DEFAULT_NOISE_FILTERING_LEVEL_MB = 10.0


def _mb_to_bytes(level_mb: float) -> int:
    if level_mb < 0:
        raise ValueError(f"Noise filtering level must be non-negative, got {level_mb}")
    return int(level_mb * MB)


class NonEphemeralHeapUseModel:
    """
    Streaming estimator of the oldest-generation use level and live set.

    Args:
        noise_filtering_level_mb: minimum change between samples, in MB,
            that counts as signal rather than noise
        regions: regions to search for the oldest generation; defaults to
            the running interpreter's regions
        region: an already resolved region reader, bypassing the search
    """

    def __init__(self, noise_filtering_level_mb: float = DEFAULT_NOISE_FILTERING_LEVEL_MB,
                 regions: Optional[Iterable[MemoryRegion]] = None,
                 region: Optional[MemoryRegion] = None):
        self.noise_filtering_level_bytes = _mb_to_bytes(noise_filtering_level_mb)

        if region is None:
            if regions is None:
                from .host_regions import get_host_regions
                regions = get_host_regions()
            region = find_old_generation(regions)
        self._region = region

        self.max_allowed = 0
        self.current_used = 0
        self.local_minimum = 0

        self._previous_value = 0
        self._previous_delta = 0

    @property
    def region(self) -> MemoryRegion:
        """The oldest-generation region this model samples"""
        return self._region

    def get_region_usage(self) -> MemoryUsage:
        """Sample the region without folding the sample into the model"""
        return self._region.get_usage()

    def get_noise_filtering_level_mb(self) -> float:
        """Noise filtering level used in estimating the live set, in MB"""
        return self.noise_filtering_level_bytes / MB

    def set_noise_filtering_level_mb(self, noise_filtering_level_mb: float):
        """Set the noise filtering level; applies from the next update()"""
        self.noise_filtering_level_bytes = _mb_to_bytes(noise_filtering_level_mb)

    def get_estimated_live_set(self) -> int:
        """An estimate of the non-ephemeral live set, in bytes"""
        return self.local_minimum

    def get_current_used(self) -> int:
        """The latest observed use level of the oldest generation, in bytes"""
        return self.current_used

    def get_max_available(self) -> int:
        """The maximum available capacity of the oldest generation, in bytes"""
        return self.max_allowed

    def update(self):
        """Sample the oldest generation and fold the sample into the model"""
        usage = self._region.get_usage()
        self.max_allowed = usage.max
        self.current_used = usage.used

        delta = self.current_used - self._previous_value

        if abs(delta) > self.noise_filtering_level_bytes:
            # Rising right after falling: the previous level was a trough
            if delta > 0 and self._previous_delta < 0:
                self.local_minimum = self._previous_value
            self._previous_value = self.current_used
            if delta != 0:
                self._previous_delta = delta

    def __repr__(self) -> str:
        return (f"NonEphemeralHeapUseModel(region={self._region.name!r}, "
                f"current_used={self.current_used}, max_allowed={self.max_allowed}, "
                f"estimated_live_set={self.local_minimum})")


OccupancyModel = NonEphemeralHeapUseModel
