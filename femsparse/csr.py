"""Compressed sparse row matrices and readers for coordinate matrix files."""

from __future__ import annotations

import struct
import sys
import time
from collections.abc import Iterable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from itertools import islice, pairwise
from pathlib import Path

from femsparse.blas import block_ranges

_HEADER = struct.Struct("=iii")
_ROW = struct.Struct("=iid")


class MatrixReadError(ValueError):
    """A matrix file could not be opened or parsed.

    ``code`` is -1 when the file cannot be opened, -2 when the header is
    unreadable, and the 1-based number of the first unreadable entry
    otherwise.
    """

    def __init__(self, message: str, code: int) -> None:
        super().__init__(message)
        self.code = code


@dataclass
class CsrMatrix:
    """A sparse matrix in compressed sparse row form with 0-based indices."""

    nrows: int
    ncols: int
    iat: list[int] = field(default_factory=list)
    ja: list[int] = field(default_factory=list)
    coef: list[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.iat = list(self.iat)
        self.ja = list(self.ja)
        self.coef = list(self.coef)
        if self.nrows < 0 or self.ncols < 0:
            raise ValueError("matrix dimensions must not be negative")
        if len(self.iat) != self.nrows + 1:
            raise ValueError("row pointer array must have nrows + 1 entries")
        if len(self.ja) != len(self.coef):
            raise ValueError("column index and coefficient arrays differ in length")
        if self.iat[0] != 0 or self.iat[-1] != len(self.coef):
            raise ValueError("row pointers do not span the coefficient array")

    def nnz(self) -> int:
        """Return the number of stored entries."""
        return len(self.coef)

    def matvec(self, v: Sequence[float]) -> list[float]:
        """Return the product of this matrix with vector ``v``."""
        if len(v) != self.ncols:
            raise ValueError("vector length does not match the number of columns")
        return _row_products(self, range(self.nrows), v)

    def add(self, other: CsrMatrix) -> CsrMatrix:
        """Return the sum with a matrix that shares the same sparsity pattern."""
        if (
            self.nrows != other.nrows
            or self.ncols != other.ncols
            or self.iat != other.iat
            or self.ja != other.ja
        ):
            raise ValueError("matrices do not share the same sparsity pattern")
        return self.with_coefficients(a + b for a, b in zip(self.coef, other.coef))

    def with_coefficients(self, coef: Iterable[float]) -> CsrMatrix:
        """Return a matrix with this pattern and the given coefficients."""
        return CsrMatrix(self.nrows, self.ncols, list(self.iat), list(self.ja), list(coef))

    def entries(self) -> Iterator[tuple[int, int, float]]:
        """Yield ``(row, column, value)`` for every stored entry, row by row."""
        for row, (start, end) in enumerate(pairwise(self.iat)):
            for col, value in zip(self.ja[start:end], self.coef[start:end]):
                yield row, col, value


def _row_products(matrix: CsrMatrix, rows: Iterable[int], v: Sequence[float]) -> list[float]:
    iat, ja, coef = matrix.iat, matrix.ja, matrix.coef
    return [
        sum(c * v[col] for col, c in zip(ja[iat[i]:iat[i + 1]], coef[iat[i]:iat[i + 1]]))
        for i in rows
    ]


def rows_to_pointers(nrows: int, irow: Sequence[int]) -> list[int]:
    """Build row pointers from 1-based row numbers of entries sorted by row."""
    rows = list(irow)
    for row in rows:
        if not 1 <= row <= nrows:
            raise ValueError(f"row number {row} is outside 1..{nrows}")
    iat = [0] * (nrows + 1)
    previous = 0
    for k, row in enumerate(rows):
        if row > previous:
            iat[previous:row] = [k] * (row - previous)
            previous = row
    iat[previous:] = [len(rows)] * (nrows + 1 - previous)
    return iat


def _assemble(nrows: int, ncols: int, triples: list[tuple[int, int, float]]) -> CsrMatrix:
    irow = [row for row, _, _ in triples]
    ja = [col - 1 for _, col, _ in triples]
    coef = [value for _, _, value in triples]
    return CsrMatrix(nrows, ncols, rows_to_pointers(nrows, irow), ja, coef)


def read_ascii_matrix(path: str | Path) -> CsrMatrix:
    """Read a text file of ``nr nc nt`` followed by ``nt`` 1-based triples."""
    try:
        text = Path(path).read_text()
    except OSError as exc:
        raise MatrixReadError(f"cannot open matrix file {path}", -1) from exc
    tokens = iter(text.split())
    header = list(islice(tokens, 3))
    try:
        nrows, ncols, nterm = (int(t) for t in header)
    except ValueError as exc:
        raise MatrixReadError(f"cannot read the header of {path}", -2) from exc
    if nterm < 0:
        raise MatrixReadError(f"negative number of entries in {path}", -2)
    triples = []
    for k in range(nterm):
        chunk = list(islice(tokens, 3))
        try:
            row_text, col_text, value_text = chunk
            triples.append((int(row_text), int(col_text), float(value_text)))
        except ValueError as exc:
            raise MatrixReadError(f"cannot read entry {k + 1} of {path}", k + 1) from exc
    return _assemble(nrows, ncols, triples)


def read_binary_matrix(path: str | Path) -> CsrMatrix:
    """Read a binary file of an ``(nr, nc, nt)`` int header and ``nt`` rows
    of ``(int row, int col, double value)`` with 1-based indices."""
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise MatrixReadError(f"cannot open matrix file {path}", -1) from exc
    if len(data) < _HEADER.size:
        raise MatrixReadError(f"cannot read the header of {path}", -2)
    nrows, ncols, nterm = _HEADER.unpack_from(data)
    if nterm < 0:
        raise MatrixReadError(f"negative number of entries in {path}", -2)
    available = (len(data) - _HEADER.size) // _ROW.size
    if available < nterm:
        raise MatrixReadError(f"cannot read entry {available + 1} of {path}", available + 1)
    body = data[_HEADER.size:_HEADER.size + nterm * _ROW.size]
    return _assemble(nrows, ncols, list(_ROW.iter_unpack(body)))


def read_csr_matrix(path: str | Path, binary: bool = False) -> CsrMatrix:
    """Read a matrix file in binary or text form."""
    return read_binary_matrix(path) if binary else read_ascii_matrix(path)


def main(argv: Sequence[str] | None = None) -> int:
    """Time a threaded sparse product of a matrix file with ``1, 2, ..., nc``."""
    args = list(sys.argv[1:] if argv is None else argv)
    usage = "usage: matrix_file np"
    if len(args) != 2:
        print(usage)
        return 1
    try:
        threads = int(args[1])
    except ValueError:
        threads = 0
    if threads < 1:
        print(usage)
        return 1

    print(f"Matrix file {args[0]}")
    try:
        matrix = read_csr_matrix(args[0], binary=False)
    except (MatrixReadError, ValueError) as exc:
        print(exc, file=sys.stderr)
        return 1
    print(f"Matrix rows {matrix.nrows} columns {matrix.ncols} nterm {matrix.nnz()}")

    v = [float(i + 1) for i in range(matrix.ncols)]
    start = time.perf_counter()
    with ThreadPoolExecutor(max_workers=threads) as pool:
        parts = pool.map(
            lambda rows: _row_products(matrix, rows, v),
            block_ranges(matrix.nrows, threads),
        )
        result = [value for part in parts for value in part]
    elapsed = time.perf_counter() - start
    assert len(result) == matrix.nrows
    print(f"time taken {elapsed:f}")
    return 0