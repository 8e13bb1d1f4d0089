"""
HeapUseWatcher Thread
=====================

Background thread that keeps a NonEphemeralHeapUseModel up to date and
optionally reports its values at a separate cadence.

The watcher polls the model at a configurable interval (1 second by
default) and writes one report line per reporting interval when
reporting is enabled. It runs as a daemon thread, so on its own it never
keeps the interpreter alive.

Termination is cooperative: terminate() sets a flag and wakes the
watcher from its inter-poll wait, and the loop exits silently.
"""

import sys
import threading
import time
from typing import Iterable, Optional, TextIO

from .config import WatcherConfiguration
from .errors import OutputTargetError
from .model import NonEphemeralHeapUseModel
from .regions import MemoryRegion


GB = 1024.0 * 1024.0 * 1024.0

REPORT_FORMAT = "CurrentUsed = %.3fGB, MaxAllowed = %.3fGB, EstimatedLiveSet = %.3fGB"


class HeapUseWatcher(threading.Thread):
    """
    Daemon thread maintaining an updated model of non-ephemeral heap use.

    The watcher is the model's only writer. Its getters can be read from
    any thread.
    """

    def __init__(self, config: Optional[WatcherConfiguration] = None,
                 regions: Optional[Iterable[MemoryRegion]] = None,
                 model: Optional[NonEphemeralHeapUseModel] = None,
                 log: Optional[TextIO] = None):
        super().__init__(name="HeapUseWatcher", daemon=True)
        self.config = config if config is not None else WatcherConfiguration()
        self.model = model if model is not None else NonEphemeralHeapUseModel(
            self.config.noise_filtering_level_mb, regions=regions
        )

        self._terminate_requested = threading.Event()
        self._owns_log = False

        if log is None:
            if self.config.log_file_name:
                try:
                    log = open(self.config.log_file_name, "w", encoding="utf-8")
                except OSError as e:
                    raise OutputTargetError(self.config.log_file_name, e) from e
                self._owns_log = True
            else:
                log = sys.stdout
        self.log = log

    # Model values

    def get_estimated_live_set(self) -> int:
        """An estimate of the non-ephemeral live set, in bytes"""
        return self.model.get_estimated_live_set()

    def get_current_used(self) -> int:
        """The latest observed use level of the oldest generation, in bytes"""
        return self.model.get_current_used()

    def get_max_available(self) -> int:
        """The maximum available capacity of the oldest generation, in bytes"""
        return self.model.get_max_available()

    # Settings

    def get_polling_interval_ms(self) -> int:
        return int(self.config.polling_interval_ms)

    def set_polling_interval_ms(self, polling_interval_ms: float) -> 'HeapUseWatcher':
        """Set the model update polling interval, in milliseconds"""
        self.config.polling_interval_ms = polling_interval_ms
        return self

    def get_reporting_interval_ms(self) -> int:
        return int(self.config.reporting_interval_ms)

    def set_reporting_interval_ms(self, reporting_interval_ms: float) -> 'HeapUseWatcher':
        """Set the output reporting interval (0 means no output reporting)"""
        self.config.reporting_interval_ms = reporting_interval_ms
        return self

    def get_noise_filtering_level_mb(self) -> float:
        return self.model.get_noise_filtering_level_mb()

    def set_noise_filtering_level_mb(self, noise_filtering_level_mb: float) -> 'HeapUseWatcher':
        """Set the noise filtering level used in estimating the live set, in MB"""
        self.config.noise_filtering_level_mb = noise_filtering_level_mb
        self.model.set_noise_filtering_level_mb(noise_filtering_level_mb)
        return self

    # Lifecycle

    def terminate(self):
        """Cause the watcher thread to exit at some point in the near future"""
        self._terminate_requested.set()

    @property
    def terminated(self) -> bool:
        return self._terminate_requested.is_set()

    def report(self):
        """Write one report line with the current model values"""
        print(REPORT_FORMAT % (self.get_current_used() / GB,
                               self.get_max_available() / GB,
                               self.get_estimated_live_set() / GB),
              file=self.log, flush=True)

    def run(self):
        """Update the model at regular intervals until terminated"""
        next_reporting_time = 0.0

        try:
            while not self._terminate_requested.is_set():
                polling_interval_sec = self.config.polling_interval_ms / 1000.0

                if polling_interval_sec > 0 and self._terminate_requested.wait(polling_interval_sec):
                    break

                self.model.update()

                now = time.time()
                if self.config.reporting_interval_ms != 0 and now >= next_reporting_time:
                    self.report()
                    next_reporting_time = now + self.config.reporting_interval_ms / 1000.0

            if self.config.verbose:
                print("# HeapUseWatcher interrupted/terminating...", file=sys.stderr)
        finally:
            if self._owns_log:
                self.log.close()

