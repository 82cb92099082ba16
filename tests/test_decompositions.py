from __future__ import annotations

import numpy as np
import pytest
from qiskit import QuantumCircuit
from qiskit.quantum_info import Operator

from phasepoly.circuit import CCZ, CNOT, CS, CZ, H, SWAP, Circuit, Phase, PhaseGate, X
from phasepoly.decompositions import (
    decompose_ccz,
    decompose_cs,
    decompose_cz,
    decompose_gate,
    decompose_swap,
    to_cnot_phase,
)
from phasepoly.verify import unitary_equivalent


def _native(name: str, qubits, num_qubits: int) -> np.ndarray:
    qc = QuantumCircuit(num_qubits)
    getattr(qc, name)(*qubits)
    return Operator(qc).data


@pytest.mark.parametrize(
    "name, qubits, decompose",
    [
        ("cz", (0, 1), decompose_cz),
        ("cz", (1, 0), decompose_cz),
        ("cs", (0, 1), decompose_cs),
        ("cs", (1, 0), decompose_cs),
        ("ccz", (0, 1, 2), decompose_ccz),
        ("ccz", (2, 0, 1), decompose_ccz),
        ("swap", (0, 2), decompose_swap),
    ],
)
def test_decompositions_match_native_gates(name, qubits, decompose) -> None:
    """Decomposed gates should match the native Qiskit gates exactly."""
    for n in range(3, 5):
        gates = decompose(*qubits)
        assert all(isinstance(g, (CNOT, PhaseGate)) for g in gates)
        decomp = Operator(Circuit(gates).to_qiskit(n)).data
        assert np.allclose(decomp, _native(name, qubits, n))


def test_ccz_decomposition_uses_seven_t_phases() -> None:
    phases = [g.phase for g in decompose_ccz(0, 1, 2) if isinstance(g, PhaseGate)]
    assert len(phases) == 7
    assert not any(p.is_clifford() for p in phases)


def test_decompose_gate_rejects_hadamards() -> None:
    assert decompose_gate(X(0)) == [X(0)]
    with pytest.raises(ValueError):
        decompose_gate(H(0))
    with pytest.raises(ValueError):
        to_cnot_phase(Circuit([CNOT(0, 1), H(1)]))


def test_x_gates_propagate_through_cnots() -> None:
    block, correction = to_cnot_phase(Circuit([X(0), CNOT(0, 1), PhaseGate(Phase.T, 1)]))
    assert block.gates == [CNOT(0, 1), PhaseGate(Phase(7), 1)]
    assert correction.gates == [X(0), X(1)]


def test_x_gates_cancel() -> None:
    block, correction = to_cnot_phase(Circuit([X(2), X(2)]))
    assert block.gates == []
    assert correction.gates == []


def test_cnot_phase_form_preserves_semantics(random_circuit) -> None:
    kinds = ("x", "phase", "cnot", "cz", "cs", "ccz", "swap")
    for seed in range(8):
        circuit = random_circuit(4, 20, seed, kinds=kinds)
        block, correction = to_cnot_phase(circuit)

        assert all(isinstance(g, (CNOT, PhaseGate)) for g in block.gates)
        flipped = [g.qubit for g in correction.gates]
        assert all(isinstance(g, X) for g in correction.gates)
        assert flipped == sorted(set(flipped))
        assert unitary_equivalent(block.copy().merge(correction), circuit)


def test_controlled_gates_expand_inside_blocks() -> None:
    circuit = Circuit([CZ(0, 1), CS(1, 2), CCZ(0, 1, 2), SWAP(0, 2)])
    block, correction = to_cnot_phase(circuit)
    assert correction.gates == []
    assert len(block) == 5 + 5 + 13 + 3
