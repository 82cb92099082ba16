"""Gate decomposition utilities for phasepoly.

This module expands the non-CNOT gates of a functional block into CNOT and
phase gates and moves all ``X`` gates to the end of the block.
"""

from __future__ import annotations

from typing import List, Set, Tuple

from .circuit import CCZ, CNOT, CS, CZ, SWAP, Circuit, Gate, H, Phase, PhaseGate, X


def decompose_cz(a: int, b: int) -> List[Gate]:
    """Return a CNOT and phase decomposition of ``CZ(a, b)``."""

    return [
        PhaseGate(-Phase.S, a),
        PhaseGate(-Phase.S, b),
        CNOT(a, b),
        PhaseGate(Phase.S, b),
        CNOT(a, b),
    ]


def decompose_cs(a: int, b: int) -> List[Gate]:
    """Return a CNOT and phase decomposition of ``CS(a, b)``."""

    return [
        CNOT(a, b),
        PhaseGate(-Phase.T, b),
        CNOT(a, b),
        PhaseGate(Phase.T, a),
        PhaseGate(Phase.T, b),
    ]


def decompose_ccz(a: int, b: int, c: int) -> List[Gate]:
    """Return a decomposition of a controlled-controlled-Z (``CCZ``) gate.

    The sequence uses seven T-like phases, the minimum for ``CCZ`` without
    ancillas.

    Parameters
    ----------
    a, b, c:
        Qubits of the gate.  ``CCZ`` is symmetric so their roles only affect
        the placement of the CNOTs.
    """

    return [
        CNOT(b, c),
        PhaseGate(-Phase.T, c),
        CNOT(a, c),
        PhaseGate(Phase.T, c),
        CNOT(b, c),
        PhaseGate(-Phase.T, c),
        CNOT(a, c),
        PhaseGate(Phase.T, c),
        PhaseGate(Phase.T, b),
        CNOT(a, b),
        PhaseGate(Phase.T, a),
        PhaseGate(-Phase.T, b),
        CNOT(a, b),
    ]


def decompose_swap(a: int, b: int) -> List[Gate]:
    return [CNOT(a, b), CNOT(b, a), CNOT(a, b)]


def decompose_gate(gate: Gate) -> List[Gate]:
    """Return ``gate`` expanded into ``X``, ``CNOT`` and phase gates."""

    if isinstance(gate, CZ):
        return decompose_cz(gate.a, gate.b)
    if isinstance(gate, CS):
        return decompose_cs(gate.a, gate.b)
    if isinstance(gate, CCZ):
        return decompose_ccz(gate.a, gate.b, gate.c)
    if isinstance(gate, SWAP):
        return decompose_swap(gate.a, gate.b)
    if isinstance(gate, H):
        raise ValueError("Hadamard gates must be gadgetized before canonicalization")
    return [gate]


def to_cnot_phase(block: Circuit) -> Tuple[Circuit, Circuit]:
    """Canonicalize a functional block into CNOT and phase gates.

    ``X`` gates are pushed to the end of the block: an ``X`` on the control
    of a ``CNOT`` spreads to its target and a phase on a flipped qubit is
    negated (up to global phase).  The ``X`` gates left over at the end are
    returned separately, one per qubit in ascending order.

    Returns
    -------
    tuple
        ``(cnot_phase_block, x_correction)``.

    Raises
    ------
    ValueError
        If the block contains a Hadamard gate.
    """

    gates: List[Gate] = []
    flipped: Set[int] = set()
    for original in block.gates:
        for gate in decompose_gate(original):
            if isinstance(gate, X):
                flipped ^= {gate.qubit}
            elif isinstance(gate, CNOT):
                if gate.control in flipped:
                    flipped ^= {gate.target}
                gates.append(gate)
            elif isinstance(gate, PhaseGate):
                if gate.qubit in flipped:
                    gate = PhaseGate(-gate.phase, gate.qubit)
                gates.append(gate)
            else:  # pragma: no cover - decompose_gate covers the vocabulary
                raise TypeError(f"Unsupported gate {gate!r}")
    correction = Circuit(X(q) for q in sorted(flipped))
    return Circuit(gates), correction


__all__ = [
    "decompose_cz",
    "decompose_cs",
    "decompose_ccz",
    "decompose_swap",
    "decompose_gate",
    "to_cnot_phase",
]
