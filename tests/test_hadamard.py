from __future__ import annotations

import pytest

from phasepoly.circuit import CCZ, CNOT, CS, CZ, H, SWAP, Circuit, Phase, PhaseGate, X
from phasepoly.hadamard import decompose_hadamards, from_named_gates, move_h_optimal, to_named_gates
from phasepoly.verify import unitary_equivalent


def test_decompose_hadamards_allocates_fresh_ancillas() -> None:
    block = Circuit([H(0), PhaseGate(Phase.T, 0), H(0)])
    gadgets = decompose_hadamards(block, 1)

    assert gadgets.ancillas == [1, 2]
    assert gadgets.next_id == 3
    assert gadgets.block.gates == [
        SWAP(1, 0),
        CZ(1, 0),
        PhaseGate(Phase.T, 0),
        SWAP(2, 0),
        CZ(2, 0),
    ]
    assert block.gates[0] == H(0)


def test_hadamard_gadget_postselects_to_the_original() -> None:
    block = Circuit([H(0), PhaseGate(Phase.T, 0), H(0), CNOT(0, 1), H(1)])
    gadgets = decompose_hadamards(block, 2)

    prepare = Circuit([H(a) for a in gadgets.ancillas])
    circuit = prepare.copy().merge(gadgets.block).merge(prepare)
    assert unitary_equivalent(circuit, block, qubits=2)


def test_named_gate_vocabulary() -> None:
    named = to_named_gates(
        Circuit([PhaseGate(Phase(7), 0), X(1), CNOT(0, 1), CCZ(0, 1, 2), SWAP(0, 2)])
    )
    assert named == [
        ("z", [0]),
        ("s", [0]),
        ("t", [0]),
        ("x", [1]),
        ("cx", [0, 1]),
        ("ccz", [0, 1, 2]),
        ("cx", [0, 2]),
        ("cx", [2, 0]),
        ("cx", [0, 2]),
    ]


def test_named_gates_preserve_the_unitary(random_circuit) -> None:
    for seed in range(5):
        circuit = random_circuit(3, 15, seed)
        restored = from_named_gates(to_named_gates(circuit))
        assert unitary_equivalent(circuit, restored)


def test_named_controlled_phases_are_exact() -> None:
    for gate in (CZ(0, 1), CS(1, 0)):
        assert unitary_equivalent(from_named_gates(to_named_gates(Circuit([gate]))), Circuit([gate]))


def test_from_named_gates_accepts_toffoli() -> None:
    assert from_named_gates([("tof", [0, 1, 2])]).gates == [H(2), CCZ(0, 1, 2), H(2)]
    with pytest.raises(ValueError):
        from_named_gates([("y", [0])])


def test_move_h_optimal_without_minimizer_is_a_no_op() -> None:
    circuit = Circuit([H(0), CS(0, 1), H(0)])
    assert move_h_optimal(circuit, None) is circuit
    assert circuit.gates == [H(0), CS(0, 1), H(0)]


def test_move_h_optimal_calls_the_minimizer() -> None:
    calls = []

    def minimizer(num_qubits, gates):
        calls.append((num_qubits, list(gates)))
        # H(0) commutes with T(1), so both copies cancel
        return [g for g in gates if g != ("h", [0])] + [("h", [1]), ("h", [1])]

    circuit = Circuit([H(0), PhaseGate(Phase.T, 1), H(0)])
    move_h_optimal(circuit, minimizer)

    assert calls == [(2, [("h", [0]), ("t", [1]), ("h", [0])])]
    assert circuit.gates == [PhaseGate(Phase.T, 1), H(1), H(1)]
