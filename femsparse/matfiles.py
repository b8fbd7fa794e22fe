"""Readers for plain-text matrix and vector files, and the commands that
multiply a matrix file by a vector file."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable, Iterator, Sequence
from itertools import islice, pairwise
from pathlib import Path
from typing import TypeVar

from femsparse.blas import matvec
from femsparse.csr import CsrMatrix

_T = TypeVar("_T")


class FileFormatError(ValueError):
    """A matrix or vector file does not hold what its header announces."""


def _take(
    tokens: Iterator[str],
    count: int,
    convert: Callable[[str], _T],
    what: str,
    path: str | Path,
) -> list[_T]:
    chunk = list(islice(tokens, count))
    if len(chunk) != count:
        raise FileFormatError(f"{path}: expected {count} values for {what}, found {len(chunk)}")
    try:
        return [convert(token) for token in chunk]
    except ValueError as exc:
        raise FileFormatError(f"{path}: malformed value in {what}") from exc


def _sizes(tokens: Iterator[str], count: int, what: str, path: str | Path) -> list[int]:
    sizes = _take(tokens, count, int, what, path)
    if any(size < 0 for size in sizes):
        raise FileFormatError(f"{path}: negative size in {what}")
    return sizes


def read_dense_matrix(path: str | Path) -> list[list[float]]:
    """Read ``nr nc`` followed by ``nr * nc`` values stored row by row."""
    tokens = iter(Path(path).read_text().split())
    nrows, ncols = _sizes(tokens, 2, "the matrix header", path)
    values = _take(tokens, nrows * ncols, float, "the matrix entries", path)
    return [values[start:start + ncols] for start in range(0, nrows * ncols, ncols)] if ncols else [
        [] for _ in range(nrows)
    ]


def read_vector(path: str | Path) -> list[float]:
    """Read ``n`` followed by ``n`` values."""
    tokens = iter(Path(path).read_text().split())
    (size,) = _sizes(tokens, 1, "the vector header", path)
    return _take(tokens, size, float, "the vector entries", path)


def read_csr_text(path: str | Path) -> CsrMatrix:
    """Read ``nr nt``, then ``nr + 1`` row pointers, ``nt`` 0-based column
    indices and ``nt`` coefficients."""
    tokens = iter(Path(path).read_text().split())
    nrows, nterm = _sizes(tokens, 2, "the matrix header", path)
    iat = _take(tokens, nrows + 1, int, "the row pointers", path)
    ja = _take(tokens, nterm, int, "the column indices", path)
    coef = _take(tokens, nterm, float, "the coefficients", path)
    if any(col < 0 for col in ja):
        raise FileFormatError(f"{path}: negative column index")
    ncols = max(nrows, max(ja, default=-1) + 1)
    try:
        return CsrMatrix(nrows, ncols, iat, ja, coef)
    except ValueError as exc:
        raise FileFormatError(f"{path}: {exc}") from exc


def format_values(values: Iterable[float], spec: str) -> str:
    """Format every value with ``spec`` and join them with single spaces."""
    return " ".join(format(value, spec) for value in values)


def _load(reader: Callable[[str], _T], path: str) -> tuple[_T | None, int]:
    try:
        return reader(path), 0
    except OSError:
        print(f"cannot open file {path}")
        return None, 1
    except FileFormatError as exc:
        print(exc)
        return None, 2


def main(argv: Sequence[str] | None = None) -> int:
    """Multiply a dense matrix file by a vector file and print all three."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 2:
        print("usage: matvec matrix_file vector_file")
        return 1
    matrix, status = _load(read_dense_matrix, args[0])
    if matrix is None:
        return status
    vector, status = _load(read_vector, args[1])
    if vector is None:
        return 1 if status == 1 else 3

    print("Matrix:")
    for row in matrix:
        print(" " + format_values(row, "2.2f"))
    print("Vector:")
    for value in vector:
        print(f" {value:2.2f}")
    try:
        product = matvec(matrix, vector)
    except ValueError:
        print("matrix and vector sizes do not agree")
        return 4
    print("MxV:")
    for value in product:
        print(f" {value:10.2f}")
    return 0


def csr_main(argv: Sequence[str] | None = None) -> int:
    """Multiply a sparse matrix file by a vector file and print all three."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 2:
        print("usage: matcsrvec matrix_file vector_file")
        return 1
    matrix, status = _load(read_csr_text, args[0])
    if matrix is None:
        return status
    vector, status = _load(read_vector, args[1])
    if vector is None:
        return 1 if status == 1 else 3

    print("Matrix in coordinate form:")
    for row, (start, end) in enumerate(pairwise(matrix.iat)):
        print(f"--> {start} {end}")
        for col, value in zip(matrix.ja[start:end], matrix.coef[start:end]):
            print(f"{row:4d} {col:4d} {value:10.4f}")
    print("Vector:")
    for value in vector:
        print(f" {value:10.2f}")
    try:
        product = matrix.matvec(vector)
    except ValueError:
        print("matrix and vector sizes do not agree")
        return 4
    print("MxV:")
    for value in product:
        print(f" {value:10.2f}")
    return 0