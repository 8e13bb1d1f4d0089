"""
HeapUseWatcher Configuration
============================

Parses watcher arguments (from a command line or from an embedded
options string) into a WatcherConfiguration.

Valid arguments:
    [-v] [-i pollingIntervalMsec] [-r reportingIntervalMsec]
    [-e noiseFilteringLevelInMB] [-l logFileName] [-h]
"""

import argparse
import math
import re
import sys
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, TextIO

from .errors import ConfigurationError, RegionResolutionError
from .model import DEFAULT_NOISE_FILTERING_LEVEL_MB, NonEphemeralHeapUseModel
from .regions import MemoryRegion


VALID_ARGS = ("[-v] [-i pollingIntervalMsec] [-r reportingIntervalMsec] "
              " [-e noiseFilteringLevelInMB] [-l logFileName]\n")

HELP_TEXT = (
    " [-h]                          help\n"
    " [-v]                          verbose\n"
    " [-i pollingIntervalMsec]      Polling interval for HeapWatcher [default 1000 msec]\n"
    " [-r reportingIntervalMsec]    Reporting interval [default 0, for no reporting]\n"
    " [-e noiseFilteringLevelInMB]  The level of noise filtering to apply in determining\n"
    "                               the live set [default 10 MB]\n"
    " [-l logFileName]              File to direct logging to (default none, output to stdout)\n"
    "\n"
)

OPTIONS_SEPARATOR = re.compile(r"[ ,;]+")


def split_options(options: Optional[str]) -> List[str]:
    """Split an embedded options string on runs of spaces, commas and semicolons"""
    if not options:
        return []
    return [part for part in OPTIONS_SEPARATOR.split(options) if part]


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting the process"""

    def error(self, message):
        raise ConfigurationError(message)


def _build_parser() -> _ArgumentParser:
    parser = _ArgumentParser(prog="HeapUseWatcher", add_help=False)
    parser.add_argument('-v', dest='verbose', action='store_true')
    parser.add_argument('-i', dest='polling_interval_ms', type=float,
                        default=1000.0)
    parser.add_argument('-r', dest='reporting_interval_ms', type=float,
                        default=0.0)
    parser.add_argument('-e', dest='noise_filtering_level_mb', type=float,
                        default=DEFAULT_NOISE_FILTERING_LEVEL_MB)
    parser.add_argument('-l', dest='log_file_name', default=None)
    parser.add_argument('-h', dest='help', action='store_true')
    return parser


@dataclass
class WatcherConfiguration:
    """Configuration parameters for the HeapUseWatcher"""

    noise_filtering_level_mb: float = DEFAULT_NOISE_FILTERING_LEVEL_MB
    polling_interval_ms: float = 1000.0
    reporting_interval_ms: float = 0.0     # 0 disables reporting
    verbose: bool = False
    log_file_name: Optional[str] = None

    # Parse outcome
    error: bool = False
    help: bool = False
    error_message: str = ""

    @classmethod
    def parse(cls, args: Sequence[str]) -> 'WatcherConfiguration':
        """Parse arguments, raising ConfigurationError on malformed input"""
        namespace = _build_parser().parse_args(list(args))

        for name in ('polling_interval_ms', 'reporting_interval_ms', 'noise_filtering_level_mb'):
            value = getattr(namespace, name)
            if not math.isfinite(value) or value < 0:
                raise ConfigurationError(f"{name} must be a non-negative number, got {value}", args)

        return cls(
            noise_filtering_level_mb=namespace.noise_filtering_level_mb,
            polling_interval_ms=namespace.polling_interval_ms,
            reporting_interval_ms=namespace.reporting_interval_ms,
            verbose=namespace.verbose,
            log_file_name=namespace.log_file_name,
            error=namespace.help,
            help=namespace.help,
        )

    @classmethod
    def from_args(cls, args: Sequence[str],
                  regions: Optional[Iterable[MemoryRegion]] = None,
                  err: Optional[TextIO] = None) -> 'WatcherConfiguration':
        """
        Build a configuration, recording (not raising) any error.

        A model is built as a probe so that a missing oldest-generation
        region is reported here, before any watcher thread exists. On
        error or help, the valid-arguments text is written to err.
        """
        err = err if err is not None else sys.stderr
        args = list(args)

        try:
            config = cls.parse(args)
            try:
                NonEphemeralHeapUseModel(config.noise_filtering_level_mb, regions=regions)
            except RegionResolutionError as e:
                config.error = True
                config.error_message = str(e)
                print(config.error_message, file=err)
        except ConfigurationError as e:
            config = cls(error=True)
            config.error_message = (
                "Error: launched with the following args:\n"
                + "".join(f"{arg} " for arg in args)
                + "\nWhich was parsed as an error, indicated by the following exception:\n"
                + str(e)
            )
            print(config.error_message, file=err)

        if config.error or config.help:
            print("valid arguments:\n" + VALID_ARGS, file=err)
            print(HELP_TEXT, file=err)

        return config
