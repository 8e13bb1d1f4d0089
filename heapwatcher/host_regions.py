"""
Host Memory Regions
===================

Memory regions exposed by the running CPython interpreter.

CPython's cyclic collector keeps tracked objects in three generations.
Each generation is exposed as a region whose occupancy is the summed
shallow size of the objects it currently holds; walking a generation
does not trigger a collection. The resident set of the whole process is
exposed as an additional region for reference.
"""

import gc
import sys
from typing import List, Optional

import psutil

from .regions import MemoryRegion, MemoryUsage


GENERATION_REGION_NAMES = (
    "CPython Young Gen",
    "CPython Middle Gen",
    "CPython Old Gen",
)

PROCESS_REGION_NAME = "Process Resident"


def get_capacity_limit() -> int:
    """
    Maximum number of bytes the process can hold.

    Physical memory, reduced to the address-space rlimit where the platform
    reports one.
    """
    capacity = psutil.virtual_memory().total

    if hasattr(psutil, "RLIMIT_AS"):
        try:
            soft, _ = psutil.Process().rlimit(psutil.RLIMIT_AS)
        except (psutil.Error, OSError):
            soft = psutil.RLIM_INFINITY
        if soft != psutil.RLIM_INFINITY and 0 < soft < capacity:
            capacity = soft

    return capacity


class GCGenerationRegion(MemoryRegion):
    """One generation of CPython's cyclic garbage collector"""

    def __init__(self, generation: int, name: Optional[str] = None):
        if not 0 <= generation < len(GENERATION_REGION_NAMES):
            raise ValueError(f"Invalid gc generation: {generation}")
        super().__init__(name or GENERATION_REGION_NAMES[generation])
        self.generation = generation

    def get_usage(self) -> MemoryUsage:
        used = sum(sys.getsizeof(obj) for obj in gc.get_objects(generation=self.generation))
        return MemoryUsage(used, get_capacity_limit())


class ProcessResidentRegion(MemoryRegion):
    """Resident set size of the current process"""

    def __init__(self, name: str = PROCESS_REGION_NAME):
        super().__init__(name)
        self._process = psutil.Process()

    def get_usage(self) -> MemoryUsage:
        return MemoryUsage(self._process.memory_info().rss, get_capacity_limit())


def get_host_regions() -> List[MemoryRegion]:
    """Get the memory regions of the running interpreter, youngest first"""
    regions: List[MemoryRegion] = [
        GCGenerationRegion(generation) for generation in range(len(GENERATION_REGION_NAMES))
    ]
    regions.append(ProcessResidentRegion())
    return regions
