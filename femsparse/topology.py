"""Sparsity pattern of the node-to-node graph of a tetrahedral mesh."""

from __future__ import annotations

import sys
from collections.abc import Iterable, Sequence
from itertools import accumulate, combinations, islice
from pathlib import Path

from femsparse.csr import CsrMatrix
from femsparse.matfiles import FileFormatError

DEFAULT_ROW_CAPACITY = 30


class TopologyError(ValueError):
    """The mesh cannot be turned into a sparsity pattern."""


def build_topology(
    n: int, tetra: Iterable[Sequence[int]], n1: int = DEFAULT_ROW_CAPACITY
) -> CsrMatrix:
    """Build the symmetric sparsity pattern of a mesh of ``n`` nodes.

    ``tetra`` holds 0-based node indices, four per element. Every node is
    coupled with itself and with every node it shares an element with;
    the columns of each row are in ascending order and all coefficients
    are 1.0. ``n1`` bounds the number of entries of a row on or above the
    diagonal; exceeding it raises :class:`TopologyError`.
    """
    if n < 0:
        raise ValueError("the number of nodes must not be negative")
    if n1 < 1:
        raise ValueError("the row capacity must be at least 1")

    upper = [{i} for i in range(n)]
    for k, tet in enumerate(tetra):
        nodes = sorted(tet)
        if len(nodes) != 4:
            raise TopologyError(f"tetrahedron {k} has {len(nodes)} nodes instead of 4")
        for node in nodes:
            if not 0 <= node < n:
                raise TopologyError(f"tetrahedron {k} refers to node {node} outside 0..{n - 1}")
        for low, high in combinations(nodes, 2):
            row = upper[low]
            if low == high or high in row:
                continue
            if len(row) >= n1:
                raise TopologyError(
                    f"Error for tetra {k} unknown {high}: row {low} is full, increase n1"
                )
            row.add(high)

    full = [set() for _ in range(n)]
    for i, row in enumerate(upper):
        for col in row:
            full[i].add(col)
            full[col].add(i)

    ja = [col for row in full for col in sorted(row)]
    iat = [0, *accumulate(len(row) for row in full)]
    return CsrMatrix(n, n, iat, ja, [1.0] * len(ja))


def read_tetrahedra(path: str | Path) -> list[tuple[int, int, int, int]]:
    """Read ``ntet`` followed by lines ``id n1 n2 n3 n4 tag`` with 1-based
    nodes, and return the elements with 0-based node indices."""
    tokens = iter(Path(path).read_text().split())
    header = list(islice(tokens, 1))
    try:
        (ntet,) = (int(token) for token in header)
    except ValueError as exc:
        raise FileFormatError(f"{path}: cannot read the number of tetrahedra") from exc
    if ntet < 0:
        raise FileFormatError(f"{path}: negative number of tetrahedra")
    elements = []
    for k in range(ntet):
        chunk = list(islice(tokens, 6))
        if len(chunk) != 6:
            raise FileFormatError(f"{path}: tetrahedron {k + 1} is incomplete")
        try:
            values = [int(token) for token in chunk]
        except ValueError as exc:
            raise FileFormatError(f"{path}: malformed tetrahedron {k + 1}") from exc
        a, b, c, d = (value - 1 for value in values[1:5])
        elements.append((a, b, c, d))
    return elements


def main(argv: Sequence[str] | None = None) -> int:
    """Build the pattern of a tetrahedra file and write ``out_tet`` and
    ``out_pat`` in the working directory."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("Too few arguments.\n Usage: [tetra file]")
        return 1
    try:
        tetra = read_tetrahedra(args[0])
    except OSError:
        print(f"cannot open file {args[0]}")
        return 1
    except FileFormatError as exc:
        print(exc)
        return 1

    with Path("out_tet").open("w") as out:
        for tet in tetra:
            out.write("".join(f" {node + 1:10d}" for node in tet) + "\n")

    nn = max((node for tet in tetra for node in tet), default=-1) + 1
    print(f"Number of equations: {nn}")

    try:
        pattern = build_topology(nn, tetra, DEFAULT_ROW_CAPACITY)
    except TopologyError as exc:
        print(exc)
        return 1

    with Path("out_pat").open("w") as out:
        for row, col, _ in pattern.entries():
            out.write(f"{row + 1:10d} {col + 1:10d} 1.0\n")
    return 0