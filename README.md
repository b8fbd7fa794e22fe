# femsparse

Small, dependency-free building blocks for sparse linear algebra on
tetrahedral finite-element meshes:

- dense vector and matrix helpers on plain lists (`femsparse.blas`):
  `scalar_product`, `norm`, `vector_sum`, `axpy`, `matvec`, `matmat`,
  `transpose`, and `block_ranges` / `partitioned_dot` for splitting work
  into contiguous blocks
- a compressed sparse row matrix, `CsrMatrix`, with readers for text and
  binary triplet files (`femsparse.csr`)
- readers for simple dense matrix, vector and CSR text files
  (`femsparse.matfiles`)
- QR factorisations by Gram–Schmidt (`femsparse.qr`): `qr` (modified
  Gram–Schmidt on a column-stored matrix, returning square `Q`) and
  `classical_qr` (classical Gram–Schmidt on a row-major matrix)
- a GMRES solver without restarts (`femsparse.gmres`)
- construction of the symmetric sparsity pattern of a tetrahedral mesh
  (`femsparse.topology`)
- assembly of diffusion (stiffness), advection and mass matrices for
  linear tetrahedra (`femsparse.fem`)

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Command-line tools

| Command | Arguments | What it does |
|---|---|---|
| `femsparse-spmv` | `MATRIX NP` | Reads a text triplet matrix file, multiplies it by the vector `1, 2, ..., ncols` using `NP` worker threads and prints the time taken. |
| `femsparse-matvec` | `MATRIX VECTOR` | Reads a dense matrix and a vector, prints both and their product. |
| `femsparse-csrvec` | `MATRIX VECTOR` | Reads a CSR text matrix and a vector, prints the entries row by row and the product. |
| `femsparse-topol` | `TETRA` | Builds the mesh sparsity pattern and writes `out_tet` (the elements, 1-based) and `out_pat` (`row col 1.0` lines, 1-based) in the current directory. |
| `femsparse-fem` | `TETRA COORD NP` | Assembles the finite-element system `advection + stiffness + mass / 0.1` on the mesh with `NP` worker threads, builds the right-hand side as the system applied to a vector of ones, solves it with GMRES (tolerance 1e-10, at most 100 iterations) and prints the solution. |

The commands return a non-zero exit status on wrong arguments or
unreadable files.

## File formats

All text files are whitespace separated.

**Dense matrix** — a header `nrows ncols`, then the entries row by row.

**Vector** — a header `n`, then `n` values.

**CSR text matrix** — a header `nrows nterms`, then `nrows + 1` row
pointers, `nterms` 0-based column indices and `nterms` coefficients. The
number of columns is taken as the larger of `nrows` and the highest
column index plus one.

**Triplet matrix** — a header `nrows ncols nterms`, then `nterms` entries
`row col value` with 1-based indices, sorted by row. The binary variant
holds the header as three 4-byte integers followed by records of two
4-byte integers and one 8-byte double, in native byte order and without
padding.

**Tetrahedra** — a header with the number of elements, then one line per
element: an index, four 1-based node numbers and a tag.

**Coordinates** — a header with the number of nodes, then one line per
node: an index and three coordinates.

## Library use

```python
from femsparse.blas import scalar_product, norm
from femsparse.csr import read_ascii_matrix

print(scalar_product([1.0, 2.0, 3.0], [4.0, 5.0, 6.0]))  # 32.0

matrix = read_ascii_matrix("matrix.txt")
y = matrix.matvec([1.0] * matrix.ncols)
print(norm(y))
```

A full pipeline:

```python
from femsparse.fem import assemble, read_coordinates
from femsparse.gmres import gmres
from femsparse.topology import build_topology, read_tetrahedra

tetra = read_tetrahedra("mesh.tet")
coords = read_coordinates("mesh.xyz")
pattern = build_topology(len(coords), tetra, 50)
system = assemble(tetra, coords, pattern).system(0.1)
result = gmres(system, system.matvec([1.0] * len(coords)), 1e-10, 100)
print(result.converged, result.iterations, result.residuals[-1])
```

`CsrMatrix` offers `nnz()`, `matvec(v)`, `add(other)` for matrices with
the same pattern, `with_coefficients(coef)` and `entries()`, which yields
`(row, column, value)` triples. `gmres` accepts any object with a
`matvec` method and returns a `GmresResult` holding `x`, `residuals`,
`iterations` and `converged`.

Errors are raised as exceptions: the triplet readers raise
`MatrixReadError` (its `code` is -1 for an unopenable file, -2 for a bad
header, or the 1-based number of the first unreadable entry), the other
readers raise `FileFormatError` or `OSError`, and `build_topology` raises
`TopologyError` when an element is malformed or a row holds more than
`n1` entries on or above the diagonal.

## What it does not do

- GMRES runs without restarts and without preconditioning.
- The `femsparse-spmv` command reads text triplet files only; binary
  files are read through `read_binary_matrix` or
  `read_csr_matrix(path, binary=True)`.
- No boundary conditions are applied during assembly, and results are not
  written to files other than the two that `femsparse-topol` produces.