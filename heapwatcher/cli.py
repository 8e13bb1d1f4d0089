"""
HeapUseWatcher entry points.

Standalone:
    heapwatcher -r 1000
    python -m heapwatcher -v -i 500 -r 5000 -l heap.log

Embedded in an existing application:
    import heapwatcher.cli
    heapwatcher.cli.install("-r 1000")

or, without touching application code, by setting HEAPWATCHER_OPTIONS
and calling install_from_environment() from a sitecustomize module.

Standalone failures exit with status 1. Embedded failures raise
HeapWatcherError (install) or are printed and ignored
(install_from_environment), so the host application keeps running.

Author: xwest
"""

import os
import sys
from typing import Iterable, List, Mapping, Optional, Sequence

from .config import WatcherConfiguration, split_options
from .errors import HeapWatcherError, OutputTargetError
from .regions import MemoryRegion
from .watcher import GB, HeapUseWatcher


OPTIONS_ENVIRONMENT_VARIABLE = "HEAPWATCHER_OPTIONS"


def _print_banner(watcher: HeapUseWatcher, args: List[str]):
    log = watcher.log
    print("# Executing: HeapUseWatcher" + "".join(f" {arg}" for arg in args), file=log)
    usage = watcher.model.get_region_usage()
    print("Oldest heap generation (Used/Max): %.3fGB/%.3fGB  [pool name: %s]"
          % (usage.used / GB, usage.max / GB, watcher.model.region.name), file=log, flush=True)


def _common_main(args: Sequence[str], exit_on_error: bool,
                 regions: Optional[Iterable[MemoryRegion]] = None) -> HeapUseWatcher:
    args = list(args)
    if regions is not None:
        regions = list(regions)

    config = WatcherConfiguration.from_args(args, regions=regions)
    if config.error:
        if exit_on_error:
            sys.exit(1)
        raise HeapWatcherError("Error: " + config.error_message)

    try:
        watcher = HeapUseWatcher(config, regions=regions)
    except OutputTargetError:
        print("HeapUseWatcher: Failed to open log file.", file=sys.stderr)
        if exit_on_error:
            sys.exit(1)
        raise

    if config.verbose:
        _print_banner(watcher, args)

    watcher.start()
    return watcher


def install(options: Optional[str] = "",
            regions: Optional[Iterable[MemoryRegion]] = None) -> HeapUseWatcher:
    """
    Start a watcher inside the running application.

    Args:
        options: arguments in command line form, separated by spaces,
            commas or semicolons (e.g. "-r 1000,-e 20")
        regions: regions to watch instead of the interpreter's own

    Returns:
        The started watcher thread

    Raises:
        HeapWatcherError: if the options are invalid, no oldest-generation
            region is found, or the report file cannot be opened
    """
    return _common_main(split_options(options), exit_on_error=False, regions=regions)


def install_from_environment(environ: Optional[Mapping[str, str]] = None) -> Optional[HeapUseWatcher]:
    """Start a watcher configured from HEAPWATCHER_OPTIONS, if it is set"""
    environ = os.environ if environ is None else environ
    options = environ.get(OPTIONS_ENVIRONMENT_VARIABLE)
    if options is None:
        return None

    try:
        return install(options)
    except HeapWatcherError as e:
        print(f"HeapUseWatcher: {e}", file=sys.stderr)
        return None


def main(argv: Optional[Sequence[str]] = None):
    """Main entry point when HeapUseWatcher is invoked from the command line"""
    argv = sys.argv[1:] if argv is None else argv
    watcher = _common_main(argv, exit_on_error=True)

    # The watcher is a daemon thread; keep the main thread alive until it exits
    try:
        watcher.join()
    except KeyboardInterrupt:
        if watcher.config.verbose:
            print("# HeapUseWatcher main() interrupted", file=watcher.log, flush=True)
        watcher.terminate()
        watcher.join()


if __name__ == "__main__":
    main()
