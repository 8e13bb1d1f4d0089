"""
Memory Regions for HeapUseWatcher
=================================

A memory region is a named part of a managed heap that can report its
current occupancy and maximum capacity on demand. The watcher only ever
looks at one of them: the oldest generation, which eventually accumulates
every non-ephemeral object regardless of the collector in use.

Regions are plain readers so that the model can be driven by the running
interpreter, by an exporter for another runtime, or by a synthetic signal.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple, Union

from .errors import RegionResolutionError


# Currently known oldest-generation names across collector implementations
OLD_GENERATION_NAMES: Tuple[str, ...] = (
    "G1 Old Gen",           # OpenJDK G1GC
    "PS Old Gen",           # OpenJDK ParallelGC
    "CMS Old Gen",          # OpenJDK ConcMarkSweepGC
    "Tenured Gen",          # OpenJDK SerialGC
    "GenPauseless Old Gen", # Zing C4/GPGC
    "Shenandoah",           # Shenandoah
    "ZHeap",                # ZGC
    "CPython Old Gen",      # CPython gc generation 2
)


@dataclass(frozen=True)
class MemoryUsage:
    """A single occupancy sample of a region, in bytes"""
    used: int
    max: int

    def __post_init__(self):
        if self.used < 0 or self.max < 0:
            raise ValueError(f"Memory usage must be non-negative, got used={self.used} max={self.max}")


UsageLike = Union[MemoryUsage, Tuple[int, int]]


def as_memory_usage(value: UsageLike) -> MemoryUsage:
    """Coerce a reader result into a MemoryUsage"""
    if isinstance(value, MemoryUsage):
        return value
    used, max_bytes = value
    return MemoryUsage(int(used), int(max_bytes))


class MemoryRegion(ABC):
    """A named memory region that can be sampled"""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def get_usage(self) -> MemoryUsage:
        """Sample the region's current occupancy and maximum capacity"""
        pass

    def used_bytes(self) -> int:
        return self.get_usage().used

    def max_bytes(self) -> int:
        return self.get_usage().max

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"


class CallableRegion(MemoryRegion):
    """
    Region backed by a zero-argument callable.

    The callable may return a MemoryUsage or a (used, max) tuple. This is
    the way to feed the model from another runtime's introspection
    facility, or from a synthetic sequence in tests.
    """

    def __init__(self, name: str, reader: Callable[[], UsageLike]):
        super().__init__(name)
        self._reader = reader

    def get_usage(self) -> MemoryUsage:
        return as_memory_usage(self._reader())


def find_old_generation(regions: Iterable[MemoryRegion],
                        recognized_names: Optional[Iterable[str]] = None) -> MemoryRegion:
    """
    Locate the oldest-generation region among the available regions.

    Regions are scanned in the order given and the first one whose name is
    recognized wins. Raises RegionResolutionError listing every available
    region name when nothing matches.
    """
    names = set(OLD_GENERATION_NAMES if recognized_names is None else recognized_names)
    available: List[MemoryRegion] = list(regions)

    for region in available:
        if region.name in names:
            return region

    raise RegionResolutionError([region.name for region in available])
