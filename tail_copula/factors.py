"""
Factor Analyzer — eigen-decomposition of the copula correlation matrix.

Answers "you run N strategies, but how many independent risk factors?"
The decomposition itself goes through ``decompose()``, a narrow wrapper
around a dense symmetric eigensolver (LAPACK via numpy). Any solver failure
or non-finite output is reported as DecompositionError and turned into the
identity decomposition here; it never reaches the caller.
"""

import logging
from dataclasses import dataclass

import numpy as np

from .config import DEFAULT_VARIANCE_THRESHOLD

logger = logging.getLogger(__name__)


class DecompositionError(Exception):
    """Raised when a correlation matrix cannot be eigen-decomposed."""


@dataclass(frozen=True)
class EigenDecomposition:
    """Eigen-structure of a correlation matrix, largest factor first."""
    eigenvalues: np.ndarray         # [n] descending
    eigenvectors: np.ndarray        # [n, n], row k pairs with eigenvalues[k]
    explained_variance: np.ndarray  # [n] cumulative share, ends at ~1.0
    effective_factors: int
    fallback: bool = False


def decompose(matrix):
    """
    Eigenvalues and eigenvectors of a real symmetric matrix.

    Parameters
    ----------
    matrix : array-like [n, n]

    Returns
    -------
    (eigenvalues, eigenvectors) : tuple of np.ndarray
        Unsorted eigenvalues [n] and eigenvectors as rows [n, n].

    Raises
    ------
    DecompositionError
    """
    m = np.asarray(matrix, dtype=np.float64)
    if m.ndim != 2 or m.shape[0] != m.shape[1] or m.shape[0] == 0:
        raise DecompositionError(f"Expected a non-empty square matrix, got shape {m.shape}")
    if not np.all(np.isfinite(m)):
        raise DecompositionError("Matrix contains non-finite entries")

    try:
        values, vectors = np.linalg.eigh(m)
    except np.linalg.LinAlgError as e:
        raise DecompositionError(str(e)) from e

    values = np.real(values)
    vectors = np.real(vectors)
    if not (np.all(np.isfinite(values)) and np.all(np.isfinite(vectors))):
        raise DecompositionError("Eigensolver returned non-finite output")
    return values, vectors.T


def _orient(vector):
    """Flip sign so the components sum non-negative (largest component breaks ties)."""
    total = vector.sum()
    if abs(total) < 1e-12:
        total = vector[np.argmax(np.abs(vector))]
    return -vector if total < 0 else vector


def effective_factor_count(explained_variance, variance_threshold):
    """Smallest k with cumulative variance >= threshold; n if never reached."""
    for i, cumulative in enumerate(explained_variance):
        if cumulative >= variance_threshold:
            return i + 1
    return len(explained_variance)


def identity_decomposition(n, fallback=False):
    """Decomposition of the n x n identity: every strategy its own factor."""
    return EigenDecomposition(
        eigenvalues=np.ones(n),
        eigenvectors=np.eye(n),
        explained_variance=np.arange(1, n + 1) / max(n, 1),
        effective_factors=n,
        fallback=fallback,
    )


def perform_eigen_analysis(correlation_matrix, variance_threshold=DEFAULT_VARIANCE_THRESHOLD,
                           decomposer=decompose):
    """
    Sorted eigen-structure, cumulative explained variance and factor count.

    Parameters
    ----------
    correlation_matrix : array-like [n, n]
    variance_threshold : float — already clamped to [0.5, 0.99]
    decomposer         : callable(matrix) -> (eigenvalues, eigenvector rows)

    Returns
    -------
    EigenDecomposition
    """
    n = len(correlation_matrix)
    if n == 0:
        return EigenDecomposition(
            eigenvalues=np.empty(0),
            eigenvectors=np.empty((0, 0)),
            explained_variance=np.empty(0),
            effective_factors=0,
        )

    try:
        values, vectors = decomposer(correlation_matrix)
        values = np.real(np.asarray(values, dtype=np.complex128))
        vectors = np.real(np.asarray(vectors, dtype=np.complex128))
        if values.shape != (n,) or vectors.shape != (n, n):
            raise DecompositionError(
                f"Decomposition shape mismatch: {values.shape}, {vectors.shape}"
            )
        total = float(values.sum())
        if not np.isfinite(total) or total <= 0:
            raise DecompositionError(f"Degenerate eigenvalue total {total}")
    except (DecompositionError, np.linalg.LinAlgError, ValueError) as e:
        logger.warning(f"Eigenvalue decomposition failed, using identity fallback: {e}")
        return identity_decomposition(n, fallback=True)

    order = np.argsort(-values, kind="stable")
    values = values[order]
    vectors = np.array([_orient(vectors[k]) for k in order])

    explained = np.cumsum(values) / total

    return EigenDecomposition(
        eigenvalues=values,
        eigenvectors=vectors,
        explained_variance=explained,
        effective_factors=effective_factor_count(explained, variance_threshold),
    )
