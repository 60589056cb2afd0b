"""
Coverage layer: visibility toggle plus the cached coverage grid.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Own the one cached CoverageGrid and the on/off state of the
heat layer. The grid is computed lazily the first time the layer is shown,
off the caller's thread, and reused for every later show.

State:
    visible      - what the user asked for
    _grid        - cached result (None until the first success)
    _future      - in-flight computation (None when idle), shared by show()
                   and compute_now()
    _generation  - bumped by invalidate(); results from an older generation
                   are not cached

Rules:
- show() with no cache and nothing in flight starts exactly one background
  computation; repeated show() calls while it runs return the same future
- hide() while computing does not cancel; the result is cached when it
  lands but visible_grid() stays None until the layer is shown again
- A failed computation leaves the cache empty, keeps the exception in
  last_error and lets the next show() retry
- The cache lives for the lifetime of the object; invalidate() drops it
  explicitly and is not called by the default flow. A computation that
  was in flight at invalidate() time finishes without touching the cache

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional, Sequence, Union

from facility_coverage.config_types import AppConfig
from facility_coverage.coverage_grid import CoverageGrid, compute_coverage_for_config
from facility_coverage.models import FacilityRecord

logger = logging.getLogger("FacilityCoverage.Layer")

GridFactory = Callable[[], CoverageGrid]


class CoverageLayer:
    """
    Toggleable coverage heat layer with a single-flight background compute.

    Args:
        records: Full facility store (never the filtered subset)
        config: CONFIG dict or AppConfig for the grid parameters
        compute_fn: Optional zero-argument factory replacing the default
            compute_coverage_for_config(records, config) call
    """

    def __init__(
        self,
        records: Sequence[FacilityRecord],
        config: Union[Dict[str, Any], AppConfig, None] = None,
        compute_fn: Optional[GridFactory] = None,
    ) -> None:
        self._records = tuple(records)
        self._config = config
        self._compute_fn = compute_fn or self._default_compute

        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._future: Optional["Future[CoverageGrid]"] = None
        self._future_generation = 0
        self._generation = 0
        self._grid: Optional[CoverageGrid] = None
        self._visible = False
        self.last_error: Optional[BaseException] = None

    def _default_compute(self) -> CoverageGrid:
        return compute_coverage_for_config(self._records, self._config)

    # ═══════════════════════════════════════════════════════════════════════
    # 🔍 STATE
    # ═══════════════════════════════════════════════════════════════════════

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def is_computing(self) -> bool:
        """True while a computation is in flight (disable the toggle control)."""
        with self._lock:
            return self._future is not None and not self._future.done()

    @property
    def is_ready(self) -> bool:
        with self._lock:
            return self._grid is not None

    @property
    def cached_grid(self) -> Optional[CoverageGrid]:
        """Cached grid regardless of visibility."""
        with self._lock:
            return self._grid

    def visible_grid(self) -> Optional[CoverageGrid]:
        """The grid to display: cached result only while the layer is visible."""
        with self._lock:
            return self._grid if self._visible else None

    def status(self) -> Dict[str, bool]:
        """Snapshot for clients: visible / computing / ready."""
        with self._lock:
            computing = self._future is not None and not self._future.done()
            return {
                "visible": self._visible,
                "computing": computing,
                "ready": self._grid is not None,
            }

    # ═══════════════════════════════════════════════════════════════════════
    # 🔀 TOGGLE
    # ═══════════════════════════════════════════════════════════════════════

    def toggle(self, visible: bool) -> Optional["Future[CoverageGrid]"]:
        """Show or hide the layer. Returns the in-flight future, if any."""
        if visible:
            return self.show()
        self.hide()
        return None

    def show(self) -> Optional["Future[CoverageGrid]"]:
        """
        Make the layer visible, starting the computation if nothing is cached.

        Returns:
            The in-flight future, or None if the grid is already cached
        """
        with self._lock:
            self._visible = True
            if self._grid is not None:
                logger.debug("🌡️ Coverage layer shown (cached)")
                return None
            previous = self._future
            if previous is not None and not previous.done():
                if self._future_generation == self._generation:
                    logger.debug("   ⏳ Coverage computation already in flight")
                    return previous
            else:
                previous = None

            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="coverage"
                )
            self.last_error = None
            logger.info("🌡️ Coverage layer shown, computing grid in background...")
            self._future = self._executor.submit(self._run, self._generation, previous)
            self._future_generation = self._generation
            return self._future

    def hide(self) -> None:
        """Hide the layer. An in-flight computation keeps running and is cached."""
        with self._lock:
            self._visible = False
        logger.debug("🌡️ Coverage layer hidden")

    def _run(
        self,
        generation: int,
        previous: Optional["Future[CoverageGrid]"] = None,
    ) -> CoverageGrid:
        if previous is not None:
            # A stale computation is still running; never overlap it
            previous.exception()
        try:
            grid = self._compute_fn()
        except Exception as e:
            logger.error(f"❌ Coverage computation failed: {e}")
            with self._lock:
                self.last_error = e
            raise
        with self._lock:
            stale = generation != self._generation
            if not stale:
                self._grid = grid
            visible = self._visible
        if stale:
            logger.info(f"   🗑️ Coverage grid discarded ({len(grid)} cells), cache was invalidated")
        elif visible:
            logger.info(f"   ✅ Coverage grid ready ({len(grid)} cells)")
        else:
            logger.info(f"   ✅ Coverage grid cached ({len(grid)} cells), layer hidden")
        return grid

    # ═══════════════════════════════════════════════════════════════════════
    # 🧰 SYNCHRONOUS HELPERS
    # ═══════════════════════════════════════════════════════════════════════

    def wait(self, timeout: Optional[float] = None) -> Optional[CoverageGrid]:
        """
        Block until the in-flight computation (if any) finishes.

        Returns:
            The cached grid, or None if nothing has been computed. A failed
            computation returns None; see last_error.

        Raises:
            concurrent.futures.TimeoutError: If timeout elapses first
        """
        with self._lock:
            future = self._future
        if future is not None:
            # Exceptions are recorded in last_error by _run()
            future.exception(timeout=timeout)
        return self.cached_grid

    def compute_now(self) -> CoverageGrid:
        """
        Compute (or reuse) the grid on the calling thread.

        The inline run is registered as the in-flight future before it
        starts, so show() and other callers join it instead of starting
        a second computation.
        """
        # Yield once so pending UI work runs before the blocking compute
        time.sleep(0)
        while True:
            with self._lock:
                if self._grid is not None:
                    return self._grid
                future = self._future
                current = self._future_generation == self._generation
                if future is None or future.done():
                    future = Future()
                    future.set_running_or_notify_cancel()
                    self._future = future
                    self._future_generation = generation = self._generation
                    self.last_error = None
                    break
            if current:
                return future.result()
            # Let the stale computation drain, then check again
            future.exception()

        logger.info("🌡️ Computing coverage grid inline...")
        try:
            grid = self._run(generation)
        except Exception as e:
            future.set_exception(e)
            raise
        future.set_result(grid)
        return grid

    def invalidate(self) -> None:
        """
        Drop the cached grid so the next show() recomputes.

        A computation already in flight finishes but its result is discarded.
        """
        with self._lock:
            self._grid = None
            self._generation += 1
        logger.info("🗑️ Coverage cache invalidated")

    def shutdown(self, wait: bool = True) -> None:
        """Release the background worker."""
        with self._lock:
            executor = self._executor
            self._executor = None
        if executor is not None:
            executor.shutdown(wait=wait)
