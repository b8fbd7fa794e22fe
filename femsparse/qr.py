"""QR factorisations by Gram-Schmidt orthogonalisation."""

from __future__ import annotations

from collections.abc import Sequence

from femsparse.blas import axpy, norm, scalar_product, transpose

_TINY = 1e-10


def qr(
    columns: Sequence[Sequence[float]], nrow: int, ncol: int
) -> tuple[list[list[float]], list[list[float]]]:
    """Factorise the ``nrow x ncol`` matrix whose columns are ``columns``.

    Only the first ``nrow`` entries of each column are used. Both results
    are stored by columns: ``Q`` is square with ``nrow`` orthonormal
    columns (completed from unit vectors when ``ncol < nrow``) and ``R``
    has ``ncol`` columns, ``R[j][i]`` being the entry in row ``i`` and
    column ``j``. The factorisation stops at the first column whose norm
    falls below 1e-10.
    """
    if nrow < 1 or ncol < 1:
        raise ValueError("matrix dimensions must be positive")
    min_d = min(nrow, ncol)
    used = columns[:min_d]
    if len(used) < min_d or any(len(column) < nrow for column in used):
        raise ValueError("not enough column data for the requested dimensions")

    q = [[float(value) for value in column[:nrow]] for column in used]
    q.extend([1.0 if i == j else 0.0 for i in range(nrow)] for j in range(min_d, nrow))
    r = [[0.0] * nrow for _ in range(ncol)]

    for i in range(min_d):
        length = norm(q[i])
        r[i][i] = length
        if length < _TINY:
            break
        q[i] = [value / length for value in q[i]]
        for j in range(i + 1, nrow):
            alpha = scalar_product(q[i], q[j])
            q[j] = axpy(q[j], q[i], -alpha)
            if j < ncol:
                r[j][i] = alpha

    for i in range(min_d, nrow):
        length = norm(q[i])
        if length == 0.0:
            raise ValueError("completion column vanished during orthogonalisation")
        q[i] = [value / length for value in q[i]]
    return q, r


def classical_qr(a: Sequence[Sequence[float]]) -> tuple[list[list[float]], list[list[float]]]:
    """Factorise a row-major ``nr x nc`` matrix by classical Gram-Schmidt.

    Returns row-major ``Q`` (``nr x nc``, orthonormal columns) and
    upper-triangular ``R`` (``nc x nc``).
    """
    rows = [[float(value) for value in row] for row in a]
    if not rows or not rows[0]:
        raise ValueError("matrix must not be empty")
    nc = len(rows[0])
    r = [[0.0] * nc for _ in range(nc)]
    q_columns: list[list[float]] = []
    for j, column in enumerate(transpose(rows)):
        v = list(column)
        for i, qi in enumerate(q_columns):
            dot = scalar_product(qi, column)
            r[i][j] = dot
            v = axpy(v, qi, -dot)
        length = norm(v)
        r[j][j] = length
        if length == 0.0:
            raise ValueError(f"column {j} is linearly dependent on the previous ones")
        q_columns.append([value / length for value in v])
    return transpose(q_columns), r