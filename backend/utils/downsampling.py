"""Chart-only series reduction. Never feed the output back into metrics."""

from operator import attrgetter
from typing import Callable, Sequence, TypeVar

from core.errors import ValidationError

T = TypeVar("T")

_default_x = attrgetter("timestamp")
_default_y = attrgetter("total_value")


def downsample_lttb(
    points: Sequence[T],
    target_count: int,
    x: Callable[[T], float] = _default_x,
    y: Callable[[T], float] = _default_y,
) -> list[T]:
    """Largest-Triangle-Three-Buckets downsampling.

    Keeps the first and last point, splits the rest into ``target_count - 2``
    buckets and from each keeps the point forming the largest triangle with the
    previously kept point and the average of the next bucket. ``x`` must be
    numeric and monotonic (e.g. epoch millis), not a date string.
    """
    if target_count < 2:
        raise ValidationError("target_count must be at least 2")
    n = len(points)
    if n <= target_count:
        return list(points)
    if target_count == 2:
        return [points[0], points[-1]]

    xs = [float(x(p)) for p in points]
    ys = [float(y(p)) for p in points]
    bucket_size = (n - 2) / (target_count - 2)

    sampled = [points[0]]
    prev = 0
    for i in range(target_count - 2):
        start = int(i * bucket_size) + 1
        end = int((i + 1) * bucket_size) + 1

        next_start = end
        next_end = min(int((i + 2) * bucket_size) + 1, n)
        if next_start >= next_end:
            # last bucket: the anchor is the final point
            avg_x, avg_y = xs[-1], ys[-1]
        else:
            span = next_end - next_start
            avg_x = sum(xs[next_start:next_end]) / span
            avg_y = sum(ys[next_start:next_end]) / span

        best_area = -1.0
        best = start
        px, py = xs[prev], ys[prev]
        for j in range(start, end):
            area = abs((px - avg_x) * (ys[j] - py) - (px - xs[j]) * (avg_y - py)) / 2
            if area > best_area:
                best_area = area
                best = j

        sampled.append(points[best])
        prev = best

    sampled.append(points[-1])
    return sampled


def downsample_decimate(points: Sequence[T], target_count: int) -> list[T]:
    """Keep every nth point plus the last one. Faster, less faithful than LTTB."""
    if target_count < 2:
        raise ValidationError("target_count must be at least 2")
    n = len(points)
    if n <= target_count:
        return list(points)
    step = -(-n // (target_count - 1))
    kept = list(points[::step])
    if (n - 1) % step:
        kept.append(points[-1])
    return kept


def downsample_config(length: int) -> int | None:
    """Target point count for a chart of ``length`` points, or None to leave it as is."""
    if length <= 500:
        return None
    if length <= 1000:
        return 500
    return 300
