from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np


@dataclass(frozen=True)
class SeriesSummary:
    max: Optional[float]
    min: Optional[float]
    avg: Optional[float]
    first: Optional[float]
    last: Optional[float]

    @property
    def change_pct(self) -> Optional[float]:
        if self.first is None or self.last is None or self.first == 0:
            return None
        return (self.last - self.first) / self.first


def summarize(values: Iterable[float]) -> SeriesSummary:
    arr = np.asarray(list(values), dtype=float)
    arr = arr[np.isfinite(arr)]
    if arr.size == 0:
        return SeriesSummary(max=None, min=None, avg=None, first=None, last=None)
    return SeriesSummary(
        max=float(arr.max()),
        min=float(arr.min()),
        avg=float(arr.mean()),
        first=float(arr[0]),
        last=float(arr[-1]),
    )


def pearson(xs: Iterable[float], ys: Iterable[float]) -> Optional[float]:
    x = np.asarray(list(xs), dtype=float)
    y = np.asarray(list(ys), dtype=float)
    if x.size != y.size or x.size < 2 or np.std(x) == 0 or np.std(y) == 0:
        return None
    return float(np.corrcoef(x, y)[0, 1])
