"""Sparse matrices, mesh topology, finite-element assembly, QR and GMRES."""

__version__ = "0.1.0"

__all__ = ["blas", "csr", "matfiles", "qr", "gmres", "topology", "fem"]