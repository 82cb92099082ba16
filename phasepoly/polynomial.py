"""Phase-polynomial algebra of gate-synthesis matrices.

A synthesis matrix ``A`` with ``n`` rows and ``r`` columns describes the
diagonal unitary that applies ``T`` to each of the ``r`` parities
``x . A[:, l]``.  The phase polynomial of that unitary is stored in an
``(n, n, n)`` integer tensor with entries modulo 8: the coefficient of
``x_i x_j x_k`` (``i > j > k``) lives at ``(i, j, k)``, the coefficient of
``x_i x_j`` (``i > j``) at ``(i, j, j)`` and the linear coefficient of
``x_i`` at ``(i, i, i)``.
"""

from __future__ import annotations

from itertools import combinations
from typing import Sequence

import numpy as np

from .circuit import CZ, Circuit, Phase, PhaseGate


def find_signature_tensor(matrix: np.ndarray) -> np.ndarray:
    """Return the signature tensor ``S[i, j, k] = XOR_l A[i,l] A[j,l] A[k,l]``.

    Two synthesis matrices with equal signature tensors implement the same
    diagonal unitary up to a Clifford factor.
    """

    a = np.asarray(matrix, dtype=np.int64)
    counts = np.einsum("il,jl,kl->ijk", a, a, a)
    return (counts % 2).astype(bool)


def _parity_weights(weight: int) -> tuple[int, int, int]:
    """Return the coefficients of the size-3, size-2 and size-1 sub-parities.

    A parity over ``m`` variables equals, modulo 8, the sum of all its
    sub-parities of size three, ``(3 - m)`` times each sub-parity of size two
    and ``(m - 2)(m - 3) / 2`` times each single variable.  ``weight`` is the
    Hamming weight of the column being split, not the number of columns or
    rows of the matrix.
    """

    return 1, (3 - weight) % 8, ((weight - 2) * (weight - 3) // 2) % 8


def find_phase_polynomial(matrix: np.ndarray) -> np.ndarray:
    """Return the phase polynomial tensor of ``matrix``.

    Every column is first split into parities of size at most three, after
    which size-3 and size-2 parities are rewritten into monomials.
    """

    a = np.asarray(matrix, dtype=bool)
    n = a.shape[0]
    s = np.zeros((n, n, n), dtype=np.int64)

    for column in a.T:
        rows = [int(q) for q in np.flatnonzero(column)][::-1]
        w3, w2, w1 = _parity_weights(len(rows))
        for i, j, k in combinations(rows, 3):
            s[i, j, k] += w3
        for i, j in combinations(rows, 2):
            s[i, j, j] += w2
        for i in rows:
            s[i, i, i] += w1
    s %= 8

    for i in range(n):
        for j in range(i):
            for k in range(j):
                c = s[i, j, k]
                if c == 0:
                    continue
                s[i, i, i] = (s[i, i, i] + 7 * c) % 8
                s[j, j, j] = (s[j, j, j] + 7 * c) % 8
                s[k, k, k] = (s[k, k, k] + 7 * c) % 8
                s[i, j, j] = (s[i, j, j] + c) % 8
                s[i, k, k] = (s[i, k, k] + c) % 8
                s[j, k, k] = (s[j, k, k] + c) % 8
                s[i, j, k] = (4 * c) % 8

    for i in range(n):
        for j in range(i):
            c = s[i, j, j]
            if c == 0:
                continue
            s[i, i, i] = (s[i, i, i] + c) % 8
            s[j, j, j] = (s[j, j, j] + c) % 8
            s[i, j, j] = (6 * c) % 8

    return s


def clifford_correction(a: np.ndarray, b: np.ndarray, mapping: Sequence[int]) -> Circuit:
    """Return a Clifford circuit ``C`` with ``C U(a) = U(b)``.

    ``U(x)`` is the diagonal CNOT+T unitary of synthesis matrix ``x`` and
    ``mapping`` translates matrix rows to qubits.  The signature tensors of
    ``a`` and ``b`` must agree; this is not checked.
    """

    diff = (find_phase_polynomial(b) - find_phase_polynomial(a)) % 8
    n = diff.shape[0]
    circuit = Circuit()
    for i in range(n):
        for j in range(i):
            # 0 or 4 when the signature tensors agree
            if diff[i, j, j] == 4:
                circuit.gates.append(CZ(mapping[i], mapping[j]))
        if diff[i, i, i] != 0:
            circuit.gates.append(PhaseGate(Phase(diff[i, i, i]), mapping[i]))
    return circuit


def has_zero_columns(matrix: np.ndarray) -> bool:
    """Return ``True`` if some column of ``matrix`` is all zero."""

    a = np.asarray(matrix, dtype=bool)
    return bool((~a.any(axis=0)).any())


__all__ = [
    "find_signature_tensor",
    "find_phase_polynomial",
    "clifford_correction",
    "has_zero_columns",
]
