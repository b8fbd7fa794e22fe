"""Assembly of linear tetrahedral finite-element matrices for a
convection-diffusion problem, and a driver that solves a test system."""

from __future__ import annotations

import sys
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from itertools import islice
from pathlib import Path

from femsparse.csr import CsrMatrix
from femsparse.gmres import gmres
from femsparse.matfiles import FileFormatError
from femsparse.topology import TopologyError, build_topology, read_tetrahedra

Point = Sequence[float]

DEFAULT_DIFFUSION = (0.1, 0.1, 1.0)
DEFAULT_VELOCITY = (5.0, 5.0, 5.0)
DEFAULT_DT = 0.1
_ROW_CAPACITY = 50


def det3(r0: Point, r1: Point, r2: Point) -> float:
    """Return the determinant of the 3x3 matrix with rows r0, r1, r2."""
    return (
        r0[0] * (r1[1] * r2[2] - r2[1] * r1[2])
        - r1[0] * (r0[1] * r2[2] - r2[1] * r0[2])
        + r2[0] * (r0[1] * r1[2] - r1[1] * r0[2])
    )


def sign(x: float) -> float:
    """Return 1.0, -1.0 or 0.0 according to the sign of ``x``."""
    return float((x > 0) - (x < 0))


def read_coordinates(path: str | Path) -> list[tuple[float, float, float]]:
    """Read ``nnodes`` followed by lines ``id x y z``."""
    tokens = iter(Path(path).read_text().split())
    try:
        (nnodes,) = (int(token) for token in islice(tokens, 1))
    except ValueError as exc:
        raise FileFormatError(f"{path}: cannot read the number of nodes") from exc
    if nnodes < 0:
        raise FileFormatError(f"{path}: negative number of nodes")
    coords = []
    for k in range(nnodes):
        chunk = list(islice(tokens, 4))
        if len(chunk) != 4:
            raise FileFormatError(f"{path}: node {k + 1} is incomplete")
        try:
            x, y, z = (float(token) for token in chunk[1:])
        except ValueError as exc:
            raise FileFormatError(f"{path}: malformed node {k + 1}") from exc
        coords.append((x, y, z))
    return coords


def tetra_volume(coords: Sequence[Point], tet: Sequence[int]) -> float:
    """Return the signed volume of a tetrahedron."""
    n0, n1, n2, n3 = (coords[node] for node in tet)
    return (det3(n1, n2, n3) - det3(n0, n2, n3) + det3(n0, n1, n3) - det3(n0, n1, n2)) / 6


def _sub(a: Point, b: Point) -> tuple[float, float, float]:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _cross(a: Point, b: Point) -> tuple[float, float, float]:
    return (a[1] * b[2] - a[2] * b[1], a[2] * b[0] - a[0] * b[2], a[0] * b[1] - a[1] * b[0])


def _dot(a: Point, b: Point) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def _element_matrices(
    points: Sequence[Point], vol: float, diffusion: Point, velocity: Point
) -> tuple[list[list[float]], list[list[float]], list[list[float]]]:
    # Gradient coefficients: b_i / (6 vol) is the gradient of the i-th shape function.
    coeffs = []
    for i in range(4):
        pi, pj, pk, pm = (points[(i + s) % 4] for s in range(4))
        normal = _cross(_sub(pk, pj), _sub(pm, pj))
        scale = 6 * vol / _dot(normal, _sub(pi, pj))
        coeffs.append(tuple(scale * component for component in normal))

    abs_vol = abs(vol)
    h = [
        [sum(d * bi * bj for d, bi, bj in zip(diffusion, ci, cj)) / (36 * abs_vol) for cj in coeffs]
        for ci in coeffs
    ]
    p = [[abs_vol / 20 * (2 if i == j else 1) for j in range(4)] for i in range(4)]
    advection_row = [sign(vol) / 24 * _dot(velocity, cj) for cj in coeffs]
    b = [list(advection_row) for _ in range(4)]
    return h, b, p


@dataclass
class FemMatrices:
    """Stiffness (diffusion), advection and mass matrices on one pattern."""

    stiffness: CsrMatrix
    advection: CsrMatrix
    mass: CsrMatrix

    def system(self, dt: float = DEFAULT_DT) -> CsrMatrix:
        """Return ``advection + stiffness + mass / dt``."""
        if dt <= 0:
            raise ValueError("the time step must be positive")
        return self.stiffness.with_coefficients(
            b + h + p / dt
            for b, h, p in zip(self.advection.coef, self.stiffness.coef, self.mass.coef)
        )


def _assemble(
    tetra: Sequence[Sequence[int]],
    coords: Sequence[Point],
    pattern: CsrMatrix,
    diffusion: Point,
    velocity: Point,
    workers: int,
) -> FemMatrices:
    position = {(row, col): k for k, (row, col, _) in enumerate(pattern.entries())}
    volumes = [tetra_volume(coords, tet) for tet in tetra]
    for k, vol in enumerate(volumes):
        if vol == 0.0:
            raise ValueError(f"tetrahedron {k} is degenerate")

    def local(k: int):
        points = [coords[node] for node in tetra[k]]
        return _element_matrices(points, volumes[k], diffusion, velocity)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        locals_ = list(pool.map(local, range(len(tetra))))

    coef_h = [0.0] * pattern.nnz()
    coef_b = [0.0] * pattern.nnz()
    coef_p = [0.0] * pattern.nnz()
    for k, (tet, (h, b, p)) in enumerate(zip(tetra, locals_)):
        for i, row in enumerate(tet):
            for j, col in enumerate(tet):
                try:
                    index = position[row, col]
                except KeyError:
                    raise ValueError(
                        f"pattern has no entry ({row}, {col}) needed by tetrahedron {k}"
                    ) from None
                coef_h[index] += h[i][j]
                coef_b[index] += b[i][j]
                coef_p[index] += p[i][j]
    return FemMatrices(
        pattern.with_coefficients(coef_h),
        pattern.with_coefficients(coef_b),
        pattern.with_coefficients(coef_p),
    )


def assemble(
    tetra: Sequence[Sequence[int]],
    coords: Sequence[Point],
    pattern: CsrMatrix,
    diffusion: Point = DEFAULT_DIFFUSION,
    velocity: Point = DEFAULT_VELOCITY,
) -> FemMatrices:
    """Assemble the global matrices of a mesh on the given sparsity pattern."""
    return _assemble(tetra, coords, pattern, diffusion, velocity, workers=1)


def main(argv: Sequence[str] | None = None) -> int:
    """Assemble a mesh, build ``A x = A 1`` and solve it by GMRES."""
    args = list(sys.argv[1:] if argv is None else argv)
    usage = "Too few arguments.\n Usage: [tetra file] [coord file] [np]"
    if len(args) < 3:
        print(usage)
        return 1
    try:
        threads = int(args[2])
    except ValueError:
        threads = 0
    if threads < 1:
        print(usage)
        return 1

    try:
        tetra = read_tetrahedra(args[0])
        nn = max((node for tet in tetra for node in tet), default=-1) + 1
        print(f"Number of equations: {nn}")
        pattern = build_topology(nn, tetra, _ROW_CAPACITY)
        print("Topology created!")
        coords = read_coordinates(args[1])
    except OSError as exc:
        print(f"cannot open file {exc.filename}")
        return 1
    except (FileFormatError, TopologyError) as exc:
        print(exc)
        return 1
    if len(coords) != nn:
        print(f"coordinate file has {len(coords)} nodes, the mesh uses {nn}")
        return 1

    start = time.perf_counter()
    try:
        matrices = _assemble(
            tetra, coords, pattern, DEFAULT_DIFFUSION, DEFAULT_VELOCITY, workers=threads
        )
    except ValueError as exc:
        print(exc)
        return 1
    print(f"assembly time taken {time.perf_counter() - start:f}")

    system = matrices.system(DEFAULT_DT)
    print("coefA build")
    rhs = system.matvec([1.0] * nn)
    print("rhs build")
    print("gmres start")
    result = gmres(system, rhs, 1e-10, 100)
    print("gmres end")
    print("x: ")
    print("".join(f"{value:f} " for value in result.x))
    return 0