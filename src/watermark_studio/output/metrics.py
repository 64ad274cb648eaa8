from __future__ import annotations

from dataclasses import asdict, dataclass
from time import perf_counter


@dataclass(slots=True)
class RunMetrics:
    total_images: int = 0
    images_processed: int = 0
    images_failed: int = 0
    images_skipped: int = 0
    execution_time_seconds: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


class Timer:
    def __init__(self) -> None:
        self._start = perf_counter()

    def elapsed(self) -> float:
        return perf_counter() - self._start
