"""Dense vector and matrix kernels on plain Python sequences."""

from __future__ import annotations

import math
from collections.abc import Sequence

Vector = Sequence[float]
Matrix = Sequence[Sequence[float]]


def scalar_product(v: Vector, w: Vector) -> float:
    """Return the dot product of two vectors of equal length."""
    return sum(a * b for a, b in zip(v, w, strict=True))


def norm(v: Vector) -> float:
    """Return the Euclidean norm of a vector."""
    return math.sqrt(scalar_product(v, v))


def vector_sum(v: Vector, w: Vector) -> list[float]:
    """Return the element-wise sum ``v + w``."""
    return [a + b for a, b in zip(v, w, strict=True)]


def axpy(v: Vector, w: Vector, alpha: float) -> list[float]:
    """Return ``v + alpha * w``."""
    return [a + alpha * b for a, b in zip(v, w, strict=True)]


def matvec(a: Matrix, v: Vector) -> list[float]:
    """Return the product of a row-major dense matrix with a vector."""
    return [scalar_product(row, v) for row in a]


def matmat(a: Matrix, b: Matrix) -> list[list[float]]:
    """Return the product of two row-major dense matrices."""
    inner = len(b)
    if any(len(row) != inner for row in a):
        raise ValueError("inner dimensions of the matrices do not agree")
    columns = transpose(b)
    return [[scalar_product(row, column) for column in columns] for row in a]


def transpose(a: Matrix) -> list[list[float]]:
    """Return the transpose of a row-major dense matrix."""
    if not a:
        return []
    width = len(a[0])
    if any(len(row) != width for row in a):
        raise ValueError("matrix rows have different lengths")
    return [list(column) for column in zip(*a)]


def block_ranges(n: int, parts: int) -> list[range]:
    """Split ``range(n)`` into ``parts`` contiguous blocks.

    Every block holds ``n // parts`` items, except the last one, which
    also takes the remainder.
    """
    if parts < 1:
        raise ValueError("the number of parts must be at least 1")
    if n < 0:
        raise ValueError("the length must not be negative")
    size = n // parts
    blocks = [range(p * size, (p + 1) * size) for p in range(parts - 1)]
    blocks.append(range((parts - 1) * size, n))
    return blocks


def partitioned_dot(v: Vector, w: Vector, parts: int) -> float:
    """Dot product computed as per-block partial sums reduced in order."""
    if len(v) != len(w):
        raise ValueError("vectors have different lengths")
    partials = [
        sum(a * b for a, b in zip(v[block.start:block.stop], w[block.start:block.stop]))
        for block in block_ranges(len(v), parts)
    ]
    return sum(partials)