"""Restart-free GMRES for sparse linear systems."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from femsparse.blas import axpy, norm, scalar_product
from femsparse.qr import qr

_BREAKDOWN = 1e-10


class _LinearOperator(Protocol):
    def matvec(self, v: Sequence[float]) -> list[float]: ...


@dataclass
class GmresResult:
    """Outcome of a GMRES solve.

    ``residuals`` holds the initial residual norm followed by the residual
    norm estimated after every iteration.
    """

    x: list[float]
    residuals: list[float]
    iterations: int
    converged: bool


def _back_substitute(r: list[list[float]], g: list[float]) -> list[float]:
    m = len(g)
    y = [0.0] * m
    for i in reversed(range(m)):
        tail = sum(r[j][i] * y[j] for j in range(i + 1, m))
        y[i] = (g[i] - tail) / r[i][i]
    return y


def gmres(
    matrix: _LinearOperator,
    rhs: Sequence[float],
    tol: float = 1e-10,
    maxit: int = 100,
    x0: Sequence[float] | None = None,
) -> GmresResult:
    """Solve ``matrix @ x = rhs`` by GMRES with modified Gram-Schmidt Arnoldi.

    Iteration stops once the residual norm drops to ``tol`` times the
    initial one, after ``maxit`` iterations, or on a happy breakdown.
    """
    if maxit < 1:
        raise ValueError("maxit must be at least 1")
    n = len(rhs)
    x = [0.0] * n if x0 is None else [float(value) for value in x0]
    if len(x) != n:
        raise ValueError("initial guess and right-hand side differ in length")

    residual = axpy(rhs, matrix.matvec(x), -1.0)
    beta = norm(residual)
    residuals = [beta]
    if beta < tol:
        return GmresResult(x, residuals, 0, True)
    exit_cond = tol * beta

    basis = [[value / beta for value in residual]]
    hessenberg: list[list[float]] = []
    q: list[list[float]] = []
    r: list[list[float]] = []
    breakdown = False

    while residuals[-1] > exit_cond and len(hessenberg) < maxit:
        w = matrix.matvec(basis[-1])
        column = []
        for vj in basis:
            h = scalar_product(w, vj)
            w = axpy(w, vj, -h)
            column.append(h)
        h_next = norm(w)
        size = len(hessenberg) + 1
        if h_next < _BREAKDOWN:
            hessenberg.append(column)
            padded = [c + [0.0] * (size - len(c)) for c in hessenberg]
            q, r = qr(padded, size, size)
            residuals.append(0.0)
            breakdown = True
            break
        column.append(h_next)
        hessenberg.append(column)
        basis.append([value / h_next for value in w])
        padded = [c + [0.0] * (size + 1 - len(c)) for c in hessenberg]
        q, r = qr(padded, size + 1, size)
        residuals.append(abs(beta * q[size][0]))

    iterations = len(hessenberg)
    if iterations:
        g = [beta * q[i][0] for i in range(iterations)]
        for yj, vj in zip(_back_substitute(r, g), basis):
            x = axpy(x, vj, yj)
    converged = breakdown or residuals[-1] <= exit_cond
    return GmresResult(x, residuals, iterations, converged)