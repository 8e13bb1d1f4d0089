#!/usr/bin/env python3
"""
Live Set Estimation Validation Script
=====================================

Validates HeapUseWatcher's live set estimation in two scenarios:

1. A synthetic oldest-generation signal with a known live set, allocation
   jitter below the noise floor, and periodic collections.
2. The running interpreter, with a retained cache and a stream of
   short-lived garbage, watched through the host regions.

This script runs real workloads and provides clear pass/fail results.
"""

import gc
import random
import sys
import time
from typing import Any, Dict, List

from heapwatcher import CallableRegion, HeapUseWatcher, MemoryUsage, NonEphemeralHeapUseModel
from heapwatcher.config import WatcherConfiguration
from heapwatcher.model import MB
from heapwatcher.watcher import GB


class SyntheticOldGeneration:
    """Old generation that fills with garbage and collects back to its live set"""

    def __init__(self, live_set_mb: float, capacity_mb: float, fill_step_mb: float,
                 jitter_mb: float, seed: int = 42):
        self.live_set = int(live_set_mb * MB)
        self.capacity = int(capacity_mb * MB)
        self.fill_step = int(fill_step_mb * MB)
        self.jitter = int(jitter_mb * MB)
        self.used = self.live_set
        self.collections = 0
        self._random = random.Random(seed)

    def sample(self) -> MemoryUsage:
        self.used += self.fill_step + self._random.randint(-self.jitter, self.jitter)
        if self.used >= self.capacity * 0.9:
            self.used = self.live_set + self._random.randint(0, self.jitter)
            self.collections += 1
        self.used = max(0, min(self.used, self.capacity))
        return MemoryUsage(self.used, self.capacity)


class LiveSetValidationSuite:
    """
    Validation suite for the live set estimator.

    Passes when the estimate lands within the noise floor of the known
    live set.
    """

    def __init__(self, noise_filtering_level_mb: float = 10.0):
        self.noise_filtering_level_mb = noise_filtering_level_mb
        self.results: List[Dict[str, Any]] = []

    def run_validation(self) -> bool:
        print("🔬 Starting HeapUseWatcher Live Set Validation Suite")
        print("=" * 60)

        print("  1️⃣  Synthetic old generation test...")
        self.results.append(self._test_synthetic_signal())

        print("  2️⃣  Host interpreter test...")
        self.results.append(self._test_host_interpreter())

        print("\n📊 Validation Results:")
        print("=" * 60)
        for result in self.results:
            status = "✅ PASS" if result['passed'] else "❌ FAIL"
            print(f"  {status}  {result['name']}: {result['summary']}")

        return all(result['passed'] for result in self.results)

    def _test_synthetic_signal(self) -> Dict[str, Any]:
        old_gen = SyntheticOldGeneration(live_set_mb=300, capacity_mb=2048,
                                         fill_step_mb=40, jitter_mb=4)
        model = NonEphemeralHeapUseModel(
            self.noise_filtering_level_mb,
            regions=[CallableRegion("G1 Old Gen", old_gen.sample)]
        )

        for _ in range(500):
            model.update()

        error_mb = abs(model.get_estimated_live_set() - old_gen.live_set) / MB
        return {
            'name': 'synthetic_signal',
            'passed': old_gen.collections > 0 and error_mb <= self.noise_filtering_level_mb,
            'summary': (f"{old_gen.collections} collections, estimate "
                        f"{model.get_estimated_live_set() / MB:.1f}MB vs live set "
                        f"{old_gen.live_set / MB:.1f}MB (error {error_mb:.1f}MB)"),
        }

    def _test_host_interpreter(self) -> Dict[str, Any]:
        config = WatcherConfiguration(polling_interval_ms=20,
                                      noise_filtering_level_mb=1.0)
        watcher = HeapUseWatcher(config)
        watcher.start()

        # Retained cache: long-lived, promoted to the oldest generation
        cache = [{'key': i, 'payload': [i] * 8} for i in range(50000)]

        start = time.time()
        while time.time() - start < 3.0:
            garbage = [{'tmp': i, 'payload': [i] * 8} for i in range(50000)]
            gc.collect(1)
            del garbage
            gc.collect()
            time.sleep(0.05)

        watcher.terminate()
        watcher.join(timeout=5)

        estimate = watcher.get_estimated_live_set()
        print(f"     CurrentUsed = {watcher.get_current_used() / GB:.3f}GB, "
              f"EstimatedLiveSet = {estimate / GB:.3f}GB, cache entries = {len(cache)}")
        return {
            'name': 'host_interpreter',
            'passed': estimate > 0,
            'summary': f"estimated live set {estimate / MB:.1f}MB in {watcher.model.region.name}",
        }


if __name__ == "__main__":
    suite = LiveSetValidationSuite()
    success = suite.run_validation()
    sys.exit(0 if success else 1)
