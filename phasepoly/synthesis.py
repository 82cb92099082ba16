"""Circuit synthesis from gate-synthesis matrices.

Columns are synthesized one by one as ``T`` gadgets.  With pattern matching
enabled, runs of seven columns spanning a CCZ gadget and runs of three columns
spanning a CS gadget are synthesized as a single ``CCZ`` or ``CS`` gate
conjugated by a CNOT basis change.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .circuit import CCZ, CNOT, CS, CZ, Circuit, Gate, Phase, PhaseGate


@dataclass
class SynthesisResult:
    """Synthesized circuit together with the number of gadgets of each kind."""

    circuit: Circuit
    nccz: int = 0
    ncs: int = 0
    nt: int = 0


def synthesize_column(
    column: np.ndarray,
    phase: Phase = Phase.T,
    mapping: Sequence[int] | None = None,
) -> Circuit:
    """Apply ``phase`` to the parity selected by ``column``.

    The parity is accumulated on the first selected row with CNOTs that are
    undone afterwards.  A zero column or phase yields an empty circuit.
    """

    rows = [int(q) for q in np.flatnonzero(column)]
    if not rows or phase.value == 0:
        return Circuit()
    if mapping is None:
        mapping = range(len(column))
    target, others = rows[0], rows[1:]
    gates: List[Gate] = [CNOT(mapping[i], mapping[target]) for i in others]
    gates.append(PhaseGate(phase, mapping[target]))
    gates.extend(CNOT(mapping[i], mapping[target]) for i in reversed(others))
    return Circuit(gates)


def _pivots(vectors: np.ndarray) -> List[int] | None:
    """Return pivot positions of the rows of ``vectors`` over GF(2).

    The columns at the returned positions form an invertible submatrix.
    ``None`` is returned when the rows are linearly dependent.
    """

    m = np.array(vectors, dtype=bool)
    rows, cols = m.shape
    pivots: List[int] = []
    r = 0
    for c in range(cols):
        if r == rows:
            break
        hits = np.flatnonzero(m[r:, c])
        if hits.size == 0:
            continue
        p = r + int(hits[0])
        if p != r:
            m[[r, p]] = m[[p, r]]
        for other in range(rows):
            if other != r and m[other, c]:
                m[other] ^= m[r]
        pivots.append(c)
        r += 1
    if r < rows:
        return None
    return pivots


def _basis_change(vectors: np.ndarray, pivots: Sequence[int]) -> List[Tuple[int, int]]:
    """Return CNOTs ``(control, target)`` placing ``vectors[r]`` on ``pivots[r]``.

    Starting from the standard basis, applying the CNOTs in order leaves the
    parity ``vectors[r]`` on row ``pivots[r]``.  Rows outside ``pivots`` are
    unchanged.
    """

    size = len(pivots)
    sub = np.array(vectors[:, list(pivots)], dtype=bool)
    # Reduce the pivot submatrix to the identity; the inverse sequence builds it.
    ops: List[Tuple[int, int]] = []
    for c in range(size):
        if not sub[c, c]:
            p = c + int(np.flatnonzero(sub[c:, c])[0])
            sub[c] ^= sub[p]
            ops.append((p, c))
        for r in range(size):
            if r != c and sub[r, c]:
                sub[r] ^= sub[c]
                ops.append((c, r))
    cnots = [(pivots[p], pivots[q]) for p, q in reversed(ops)]

    pivot_set = set(pivots)
    for row in range(vectors.shape[1]):
        if row in pivot_set:
            continue
        for r in range(size):
            if vectors[r, row]:
                cnots.append((row, pivots[r]))
    return cnots


def _emit_conjugated(
    circuit: Circuit,
    basis: Sequence[Tuple[int, int]],
    core: Sequence[Gate],
    mapping: Sequence[int],
) -> None:
    gates = circuit.gates
    gates.extend(CNOT(mapping[p], mapping[q]) for p, q in basis)
    gates.extend(core)
    gates.extend(CNOT(mapping[p], mapping[q]) for p, q in reversed(basis))


def _contains(columns: np.ndarray, target: np.ndarray) -> bool:
    return bool((columns == target[:, None]).all(axis=0).any())


def try_synthesize_ccz(circuit: Circuit, cols: np.ndarray, mapping: Sequence[int]) -> bool:
    """Append a CCZ gadget for seven columns if they form one.

    Columns ``a, b, c`` must be independent and the following four columns
    must be ``a^b``, ``a^c``, ``b^c`` and ``a^b^c`` in any order.
    """

    a, b, c = cols[:, 0], cols[:, 1], cols[:, 2]
    rest = cols[:, 3:7]
    vectors = np.stack([a, b, c])
    pivots = _pivots(vectors)
    if pivots is None:
        return False
    for expected in (a ^ b, a ^ c, b ^ c, a ^ b ^ c):
        if not _contains(rest, expected):
            return False

    i, j, k = (mapping[p] for p in pivots)
    core: List[Gate] = [
        CCZ(i, j, k),
        CZ(i, j),
        CZ(i, k),
        CZ(j, k),
        PhaseGate(Phase.Z, i),
        PhaseGate(Phase.Z, j),
        PhaseGate(Phase.Z, k),
    ]
    _emit_conjugated(circuit, _basis_change(vectors, pivots), core, mapping)
    return True


def try_synthesize_cs(circuit: Circuit, cols: np.ndarray, mapping: Sequence[int]) -> bool:
    """Append a CS gadget for three columns ``a, b, a^b`` with ``a, b`` independent."""

    a, b, c = cols[:, 0], cols[:, 1], cols[:, 2]
    vectors = np.stack([a, b])
    pivots = _pivots(vectors)
    if pivots is None or not np.array_equal(a ^ b, c):
        return False

    i, j = (mapping[p] for p in pivots)
    core: List[Gate] = [
        CS(i, j),
        CZ(i, j),
        PhaseGate(Phase.S, i),
        PhaseGate(Phase.S, j),
    ]
    _emit_conjugated(circuit, _basis_change(vectors, pivots), core, mapping)
    return True


def synthesize(
    matrix: np.ndarray,
    mapping: Sequence[int] | None = None,
    gadgets: bool = False,
) -> SynthesisResult:
    """Synthesize a CNOT+T circuit from a gate-synthesis matrix.

    Parameters
    ----------
    matrix:
        Boolean ``(n, r)`` matrix, one column per ``T`` gadget.
    mapping:
        Qubit of every matrix row.  Defaults to the row index.
    gadgets:
        Recognise CCZ and CS gadgets among consecutive columns.

    Returns
    -------
    SynthesisResult
        The circuit and the number of CCZ, CS and single ``T`` gadgets.
    """

    a = np.asarray(matrix, dtype=bool)
    if a.ndim != 2:
        raise ValueError(f"Expected a two-dimensional matrix, got shape {a.shape}")
    if mapping is None:
        mapping = list(range(a.shape[0]))

    result = SynthesisResult(Circuit())
    cols = a.shape[1]
    idx = 0
    while idx < cols:
        if gadgets:
            if idx + 7 <= cols and try_synthesize_ccz(result.circuit, a[:, idx:idx + 7], mapping):
                idx += 7
                result.nccz += 1
                continue
            if idx + 3 <= cols and try_synthesize_cs(result.circuit, a[:, idx:idx + 3], mapping):
                idx += 3
                result.ncs += 1
                continue
        result.circuit.merge(synthesize_column(a[:, idx], Phase.T, mapping))
        idx += 1
        result.nt += 1
    return result


__all__ = [
    "SynthesisResult",
    "synthesize_column",
    "try_synthesize_ccz",
    "try_synthesize_cs",
    "synthesize",
]
