from __future__ import annotations

import numpy as np
import pytest

from phasepoly.circuit import CCZ, CNOT, H, Circuit, Phase, PhaseGate
from phasepoly.partitioner import PartitionedCircuit, extract_cliffords, partition, pull_gates
from phasepoly.verify import unitary_equivalent


def T(q: int) -> PhaseGate:
    return PhaseGate(Phase.T, q)


def _is_clifford(gate) -> bool:
    return gate.is_clifford()


def test_pull_gates_stops_at_blocked_qubits() -> None:
    circuit = Circuit([T(0), H(1), H(0), CNOT(1, 2), CNOT(2, 0), H(2)])
    pulled = pull_gates(circuit, _is_clifford)

    assert pulled.gates == [H(1), CNOT(1, 2)]
    assert circuit.gates == [T(0), H(0), CNOT(2, 0), H(2)]
    assert pull_gates(circuit, _is_clifford).gates == []


def test_extract_cliffords_from_both_ends() -> None:
    circuit = Circuit([H(0), CNOT(0, 1), T(1), CNOT(0, 1), H(0)])
    front, back = extract_cliffords(circuit)

    assert front.gates == [H(0), CNOT(0, 1)]
    assert circuit.gates == [T(1)]
    assert back.gates == [CNOT(0, 1), H(0)]


def test_partition_of_a_single_functional_block() -> None:
    parts = Circuit([H(0), CNOT(0, 1), T(1), CNOT(0, 1), H(0)]).partition()

    assert parts.front.gates == [H(0), CNOT(0, 1)]
    assert parts.blocks == [Circuit([T(1)])]
    assert parts.back.gates == [CNOT(0, 1), H(0)]
    assert parts.num_qubits == 2


def test_partition_alternates_block_kinds(random_circuit) -> None:
    for seed in range(10):
        circuit = random_circuit(4, 30, seed)
        parts = partition(circuit.copy())

        assert len(parts.blocks) % 2 == 1 or not parts.blocks
        for i, block in enumerate(parts.blocks):
            assert block.gates
            if i % 2 == 0:
                assert not any(isinstance(g, H) for g in block.gates)
            else:
                assert all(g.is_clifford() for g in block.gates)
        assert all(g.is_clifford() for g in parts.front.gates + parts.back.gates)
        assert unitary_equivalent(parts.merge(), circuit)


def test_partition_consumes_only_the_given_circuit() -> None:
    circuit = Circuit([T(0), H(0), T(0)])
    parts = circuit.partition()
    assert len(circuit) == 3
    assert [len(b) for b in parts.blocks] == [1, 1, 1]

    consumed = circuit.copy()
    partition(consumed)
    assert consumed.gates == []


def test_pick_gadgets_merges_within_budget() -> None:
    circuit = Circuit([T(0), H(0), T(0), H(0), T(0)])

    unbounded = circuit.partition()
    assert unbounded.pick_gadgets(None, 10, seed=0) == 1
    assert unbounded.blocks[0] == circuit

    tight = circuit.partition()
    assert tight.pick_gadgets(1, 10, seed=0) == 3
    assert sorted(b.count_hadamards() for b in tight.blocks) == [0, 1, 1]

    none = circuit.partition()
    assert none.pick_gadgets(0, 10, seed=0) == 5


def test_to_cnot_phase_gadgetizes_merged_hadamards() -> None:
    circuit = Circuit([T(0), H(0), T(0), H(0), T(0)])
    parts = circuit.partition()
    parts.pick_gadgets(None, 5, seed=0)

    assert parts.to_cnot_phase() == 3
    assert parts.front.gates == [H(1), H(2)]
    assert parts.back.gates == [H(1), H(2)]
    for block in parts.functional_blocks:
        assert all(isinstance(g, (CNOT, PhaseGate)) for g in block.gates)
    assert unitary_equivalent(parts.merge(), circuit, qubits=1)


@pytest.mark.parametrize("budget", [None, 0, 1, 2])
def test_cnot_phase_blocks_preserve_semantics(random_circuit, budget) -> None:
    for seed in range(4):
        circuit = random_circuit(3, 20, seed, max_hadamards=3)
        n = circuit.num_qubits
        parts = circuit.partition()
        parts.pick_gadgets(budget, 20, seed=seed)
        next_id = parts.to_cnot_phase()

        assert next_id - n <= 3
        for block in parts.functional_blocks:
            assert all(isinstance(g, (CNOT, PhaseGate)) for g in block.gates)
        assert unitary_equivalent(parts.merge(), circuit, qubits=n)


def test_extract_gadgets_leaves_a_t_diagonal(random_circuit) -> None:
    for seed in range(4):
        circuit = random_circuit(3, 20, seed, max_hadamards=2)
        n = circuit.num_qubits
        parts = circuit.partition()
        parts.pick_gadgets(None, 10, seed=seed)
        parts.to_cnot_phase()
        matrices = parts.extract_gadgets()

        assert len(matrices) == len(parts.functional_blocks)
        for (qubits, matrix), block in zip(matrices, parts.functional_blocks):
            phases = [g for g in block.gates if isinstance(g, PhaseGate)]
            assert all(g.phase == Phase.T for g in phases)
            assert matrix.shape[1] == len(phases)
            assert matrix.shape[0] == len(qubits)
            assert qubits == sorted(qubits)
        assert unitary_equivalent(parts.merge(), circuit, qubits=n)


def test_ccz_block_matrix() -> None:
    parts = Circuit([CCZ(0, 1, 2)]).partition()
    parts.to_cnot_phase()
    [(qubits, matrix)] = parts.extract_gadgets()

    assert qubits == [0, 1, 2]
    assert matrix.shape == (3, 7)
    assert matrix.dtype == np.bool_


def test_empty_partition() -> None:
    parts = PartitionedCircuit()
    assert parts.pick_gadgets(None, 10) == 0
    assert parts.to_cnot_phase() == 0
    assert parts.extract_gadgets() == []
    assert parts.merge() == Circuit()
