"""
Per-production profiling for the tokenizer.

Enabled by setting ``JEVENTS_PROFILE`` in the environment before import.
Each grammar production wrapped in a ProfileContext accumulates its call
count, wall time, bytes handled and the events it emitted itself (events of
nested productions are credited to the innermost one). When disabled, every
helper here is a no-op.
"""

import os
import threading
import time
from dataclasses import dataclass
from typing import Any

PROFILE_HOT_PATHS = __debug__ and "JEVENTS_PROFILE" in os.environ


@dataclass
class HotPathStats:
    """Accumulated cost of one grammar production."""

    production: str
    call_count: int = 0
    total_time_ns: int = 0
    bytes_processed: int = 0
    events_emitted: int = 0

    def record_call(
        self, duration_ns: int, size: int = 0, events: int = 0
    ) -> None:
        self.call_count += 1
        self.total_time_ns += duration_ns
        self.bytes_processed += size
        self.events_emitted += events

    @property
    def events_per_call(self) -> float:
        if not self.call_count:
            return 0.0
        return self.events_emitted / self.call_count


if PROFILE_HOT_PATHS:
    _stats: dict[str, HotPathStats] = {}
    _stats_lock = threading.Lock()
    # Open contexts per parser thread, innermost last.
    _local = threading.local()

    def _open_contexts() -> list["ProfileContext"]:
        stack = getattr(_local, "stack", None)
        if stack is None:
            stack = _local.stack = []
        return stack

    class ProfileContext:
        """Times one production and counts the events it emits."""

        def __init__(self, production: str, size: int = 0) -> None:
            self.production = production
            self.size = size
            self.events = 0
            self.start_time = 0

        def __enter__(self) -> "ProfileContext":
            _open_contexts().append(self)
            self.start_time = time.perf_counter_ns()
            return self

        def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
            duration = time.perf_counter_ns() - self.start_time
            _open_contexts().pop()
            with _stats_lock:
                stats = _stats.get(self.production)
                if stats is None:
                    stats = _stats[self.production] = HotPathStats(
                        self.production
                    )
                stats.record_call(duration, self.size, self.events)

    def record_event() -> None:
        """Credits one emitted event to the innermost open production."""
        stack = _open_contexts()
        if stack:
            stack[-1].events += 1

    def get_hot_path_stats() -> dict[str, HotPathStats]:
        with _stats_lock:
            return dict(_stats)

    def clear_hot_path_stats() -> None:
        with _stats_lock:
            _stats.clear()

else:

    class ProfileContext:  # type: ignore[no-redef]
        def __init__(self, production: str, size: int = 0) -> None:
            pass

        def __enter__(self) -> "ProfileContext":
            return self

        def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
            pass

    def record_event() -> None:
        pass

    def get_hot_path_stats() -> dict[str, HotPathStats]:
        return {}

    def clear_hot_path_stats() -> None:
        pass
