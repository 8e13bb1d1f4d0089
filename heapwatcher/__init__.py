"""
HeapUseWatcher
==============

A simple tracker of non-ephemeral heap use and live set levels, for
application logic that reacts to heap occupancy (e.g. choosing when and
how much application-managed cached content to keep or evict).

The tracker only looks at the oldest generation of the heap: any memory
use in younger generations is temporary, and whatever survives there is
eventually promoted and counted. The live set is estimated as the most
recent local minimum of the oldest generation's use level, with simple
filtering applied to avoid noise. This works the same way across
collectors and their configurations.

Forms of use:
    A. Start a HeapUseWatcher thread, which independently maintains an
       updated model of the non-ephemeral heap use.
    B. Use NonEphemeralHeapUseModel directly and call its update()
       method periodically.
    C. Install the watcher into an existing application with
       heapwatcher.cli.install() to add reporting output.

Author: xwest
License: MIT
"""

__version__ = "0.1.0"
__author__ = "xwest"
__email__ = "dev@neuralscript.org"
__license__ = "MIT"

from .errors import (
    HeapWatcherError, ConfigurationError, RegionResolutionError,
    OutputTargetError, Diagnostic
)
from .regions import (
    MemoryUsage, MemoryRegion, CallableRegion, OLD_GENERATION_NAMES,
    find_old_generation
)
from .host_regions import GCGenerationRegion, ProcessResidentRegion, get_host_regions
from .model import NonEphemeralHeapUseModel, OccupancyModel
from .config import WatcherConfiguration
from .watcher import HeapUseWatcher

__all__ = [
    # Errors
    'HeapWatcherError', 'ConfigurationError', 'RegionResolutionError',
    'OutputTargetError', 'Diagnostic',

    # Regions
    'MemoryUsage', 'MemoryRegion', 'CallableRegion', 'OLD_GENERATION_NAMES',
    'find_old_generation', 'GCGenerationRegion', 'ProcessResidentRegion',
    'get_host_regions',

    # Model and watcher
    'NonEphemeralHeapUseModel', 'OccupancyModel', 'WatcherConfiguration',
    'HeapUseWatcher',

    # Version info
    '__version__', '__author__', '__email__', '__license__',
]
