"""
Unit tests for the coverage layer toggle and cache.

Tests:
1. First show computes in the background; later shows reuse the cache
2. Single-flight: repeated shows while computing share one computation
3. Hide while computing suppresses display but still caches the result
4. Failures are recorded and the next show retries
5. invalidate() forces recomputation and discards in-flight results
6. compute_now() on one thread and show() on another share one computation

Run with: python -m pytest facility_coverage/_tests/test_coverage_layer.py -v
"""

import threading

import pytest

from facility_coverage.coverage_grid import compute_coverage
from facility_coverage.coverage_layer import CoverageLayer


class GatedCompute:
    """Grid factory that blocks until released and counts its calls."""

    def __init__(self, bounds, fail_first=False):
        self.bounds = bounds
        self.release = threading.Event()
        self.started = threading.Event()
        self.calls = 0
        self.fail_first = fail_first

    def __call__(self):
        self.calls += 1
        self.started.set()
        self.release.wait(timeout=5)
        if self.fail_first and self.calls == 1:
            raise RuntimeError("boom")
        return compute_coverage([], self.bounds, 2, 1000.0, 0.6)


@pytest.fixture
def gated(small_bounds):
    return GatedCompute(small_bounds)


@pytest.fixture
def layer(sample_records, gated):
    coverage_layer = CoverageLayer(sample_records, compute_fn=gated)
    yield coverage_layer
    gated.release.set()
    coverage_layer.shutdown()


class TestCoverageLayerToggle:
    """Visibility and background computation."""

    def test_initially_hidden_and_empty(self, layer):
        assert layer.status() == {"visible": False, "computing": False, "ready": False}
        assert layer.visible_grid() is None

    def test_show_computes_in_background(self, layer, gated):
        future = layer.show()
        assert future is not None
        assert gated.started.wait(timeout=5)
        assert layer.is_computing
        assert layer.visible_grid() is None

        gated.release.set()
        grid = layer.wait(timeout=5)
        assert grid is not None
        assert layer.visible_grid() is grid
        assert not layer.is_computing

    def test_single_flight(self, layer, gated):
        first = layer.show()
        second = layer.show()
        third = layer.toggle(True)
        assert first is second is third

        gated.release.set()
        layer.wait(timeout=5)
        assert gated.calls == 1

    def test_show_joins_inline_compute(self, layer, gated):
        results = []
        worker = threading.Thread(target=lambda: results.append(layer.compute_now()))
        worker.start()
        assert gated.started.wait(timeout=5)
        assert layer.is_computing

        future = layer.show()
        assert future is not None
        assert not future.done()

        gated.release.set()
        worker.join(timeout=5)
        assert future.result(timeout=5) is results[0]
        assert layer.visible_grid() is results[0]
        assert gated.calls == 1

    def test_compute_now_joins_background_compute(self, layer, gated):
        future = layer.show()
        assert gated.started.wait(timeout=5)

        gated.release.set()
        grid = layer.compute_now()
        assert grid is future.result(timeout=5)
        assert gated.calls == 1

    def test_cached_after_first_show(self, layer, gated):
        gated.release.set()
        layer.show()
        grid = layer.wait(timeout=5)

        layer.hide()
        assert layer.show() is None
        assert layer.visible_grid() is grid
        assert gated.calls == 1

    def test_hide_while_computing_suppresses_display(self, layer, gated):
        layer.show()
        assert gated.started.wait(timeout=5)
        layer.toggle(False)

        gated.release.set()
        layer.wait(timeout=5)
        assert layer.visible_grid() is None
        assert layer.cached_grid is not None

        layer.show()
        assert layer.visible_grid() is layer.cached_grid
        assert gated.calls == 1


class TestCoverageLayerErrors:
    """Failure handling and cache control."""

    def test_failure_recorded_and_retried(self, sample_records, small_bounds):
        compute = GatedCompute(small_bounds, fail_first=True)
        compute.release.set()
        layer = CoverageLayer(sample_records, compute_fn=compute)
        try:
            layer.show()
            assert layer.wait(timeout=5) is None
            assert isinstance(layer.last_error, RuntimeError)
            assert layer.status()["ready"] is False

            layer.show()
            assert layer.wait(timeout=5) is not None
            assert layer.last_error is None
            assert compute.calls == 2
        finally:
            layer.shutdown()

    def test_invalidate_forces_recompute(self, layer, gated):
        gated.release.set()
        layer.show()
        layer.wait(timeout=5)

        layer.invalidate()
        assert not layer.is_ready
        layer.show()
        layer.wait(timeout=5)
        assert gated.calls == 2

    def test_compute_now_inline(self, sample_records, small_config):
        layer = CoverageLayer(sample_records, small_config)
        try:
            grid = layer.compute_now()
            assert len(grid) == 100
            assert layer.compute_now() is grid
            assert layer.visible_grid() is None
        finally:
            layer.shutdown()

    def test_invalidate_discards_in_flight_result(self, layer, gated):
        first = layer.show()
        assert gated.started.wait(timeout=5)
        layer.invalidate()

        gated.release.set()
        first.result(timeout=5)
        assert layer.cached_grid is None

        layer.show()
        assert layer.wait(timeout=5) is not None
        assert gated.calls == 2

    def test_show_after_invalidate_starts_fresh_computation(self, layer, gated):
        first = layer.show()
        assert gated.started.wait(timeout=5)
        layer.invalidate()

        second = layer.show()
        assert second is not first
        assert layer.show() is second

        gated.release.set()
        grid = layer.wait(timeout=5)
        assert grid is second.result(timeout=5)
        assert grid is not first.result(timeout=5)
        assert gated.calls == 2
