from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from .circuit import CNOT, Circuit, Gate, Phase, PhaseGate
from .synthesis import synthesize_column


@dataclass
class GadgetExtraction:
    """Synthesis data of one functional block.

    Attributes
    ----------
    qubits:
        Ascending qubit indices of the matrix rows.
    matrix:
        Boolean gate-synthesis matrix with one column per T gadget.
    cliffords:
        Clifford remainder: Clifford phase gadgets followed by the block's
        linear CNOT map.
    diagonal:
        T-only re-synthesis of the matrix columns.
    """

    qubits: List[int]
    matrix: np.ndarray
    cliffords: Circuit
    diagonal: Circuit


def phase_gadgets(block: Circuit) -> List[Tuple[Phase, np.ndarray]]:
    """Return the ``(phase, parity)`` gadgets of a CNOT and phase block.

    Parities are rows of the running GF(2) matrix of the block's linear map,
    expressed over the block's input qubits.

    Raises
    ------
    ValueError
        If ``block`` contains a gate other than ``CNOT`` or a phase.
    """

    n = block.num_qubits
    parities = np.eye(n, dtype=bool)
    gadgets: List[Tuple[Phase, np.ndarray]] = []
    for gate in block.gates:
        if isinstance(gate, CNOT):
            parities[gate.target] ^= parities[gate.control]
        elif isinstance(gate, PhaseGate):
            gadgets.append((gate.phase, parities[gate.qubit].copy()))
        else:
            raise ValueError(f"Expected a CNOT+Phase block, found {gate!r}")
    return gadgets


def extract_gadgets(block: Circuit) -> GadgetExtraction:
    """Diagonalize a CNOT and phase block and extract its synthesis matrix.

    Every phase on a non-Clifford parity contributes a ``T`` column to the
    matrix while the Clifford difference ``p - T`` is synthesized into the
    Clifford remainder.  Rows that stay zero are dropped from the matrix.
    """

    gadgets = phase_gadgets(block)
    cnots: List[Gate] = [g for g in block.gates if isinstance(g, CNOT)]

    cliffords = Circuit()
    diagonal = Circuit()
    columns: List[np.ndarray] = []
    for phase, parity in gadgets:
        if phase.is_clifford():
            cliffords.merge(synthesize_column(parity, phase))
        else:
            cliffords.merge(synthesize_column(parity, phase - Phase.T))
            diagonal.merge(synthesize_column(parity, Phase.T))
            columns.append(parity)
    cliffords.merge(Circuit(cnots))

    if not columns:
        return GadgetExtraction([], np.zeros((0, 0), dtype=bool), cliffords, diagonal)
    matrix = np.stack(columns, axis=1)
    qubits = [int(q) for q in np.flatnonzero(matrix.any(axis=1))]
    return GadgetExtraction(qubits, matrix[qubits], cliffords, diagonal)


__all__ = ["GadgetExtraction", "phase_gadgets", "extract_gadgets"]
