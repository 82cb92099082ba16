from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Set, Tuple, TYPE_CHECKING

import numpy as np

from .circuit import Circuit, Gate, H

if TYPE_CHECKING:  # pragma: no cover
    from .block_merge import MergePlan


def pull_gates(circuit: Circuit, predicate: Callable[[Gate], bool]) -> Circuit:
    """Pull every unobstructed gate satisfying ``predicate`` to the front.

    A gate is unobstructed when it shares no qubit with a gate that stays in
    ``circuit`` and precedes it.  Pulled gates are removed from ``circuit`` in
    place and returned, in their original order, as a new circuit.  No further
    gate can be pulled from what remains.
    """

    pulled: List[Gate] = []
    kept: List[Gate] = []
    blocked: Set[int] = set()
    for gate in circuit.gates:
        if predicate(gate) and blocked.isdisjoint(gate.qubits):
            pulled.append(gate)
        else:
            kept.append(gate)
            blocked.update(gate.qubits)
    circuit.gates = kept
    return Circuit(pulled)


def _is_clifford(gate: Gate) -> bool:
    return gate.is_clifford()


def _is_functional(gate: Gate) -> bool:
    return not isinstance(gate, H)


def extract_cliffords(circuit: Circuit) -> Tuple[Circuit, Circuit]:
    """Extract the Clifford gates at the front and back of ``circuit``.

    ``circuit`` is modified in place; ``front + circuit + back`` equals the
    original sequence up to reordering of commuting gates.
    """

    front = pull_gates(circuit, _is_clifford)
    circuit.gates.reverse()
    back = pull_gates(circuit, _is_clifford)
    back.gates.reverse()
    circuit.gates.reverse()
    return front, back


def partition(circuit: Circuit) -> "PartitionedCircuit":
    """Split ``circuit`` into alternating functional and Clifford blocks.

    The circuit is consumed.  Even-indexed blocks hold no ``H`` gate, odd
    blocks are Clifford, and the list always ends with a functional block.
    """

    front, back = extract_cliffords(circuit)
    blocks: List[Circuit] = []
    while circuit.gates:
        blocks.append(pull_gates(circuit, _is_functional))
        if not circuit.gates:
            break
        blocks.append(pull_gates(circuit, _is_clifford))
    return PartitionedCircuit(front, back, blocks)


@dataclass
class PartitionedCircuit:
    """Circuit split into a Clifford ``front``, ``blocks`` and ``back``.

    Attributes
    ----------
    front, back:
        Global Clifford circuits executed before and after all blocks.
    blocks:
        Alternating blocks.  Even indices are functional (no ``H``), odd
        indices are Clifford.
    """

    front: Circuit = field(default_factory=Circuit)
    back: Circuit = field(default_factory=Circuit)
    blocks: List[Circuit] = field(default_factory=list)

    @property
    def num_qubits(self) -> int:
        return max(
            [self.front.num_qubits, self.back.num_qubits]
            + [block.num_qubits for block in self.blocks]
        )

    @property
    def functional_blocks(self) -> List[Circuit]:
        return self.blocks[::2]

    def merge(self) -> Circuit:
        """Return the concatenation ``front, blocks..., back`` as a new circuit."""

        circuit = self.front.copy()
        for block in self.blocks:
            circuit.merge(block.copy())
        circuit.merge(self.back.copy())
        return circuit

    def pick_gadgets(
        self,
        budget: int | None,
        iterations: int,
        *,
        seed: int | np.random.SeedSequence | None = None,
        rng: np.random.Generator | None = None,
        workers: int | None = None,
    ) -> int:
        """Merge neighbouring blocks while each group stays within ``budget``.

        The cost of a block is its Hadamard count, i.e. the number of
        ancillas needed to gadgetize it.  ``None`` means unbounded.  Returns
        the resulting number of blocks.
        """

        from .block_merge import search_merges

        if len(self.blocks) <= 1:
            return len(self.blocks)
        costs = [block.count_hadamards() for block in self.blocks]
        plan = search_merges(
            costs,
            budget,
            iterations,
            seed=seed,
            rng=rng,
            workers=workers,
        )
        self.apply_plan(plan)
        return len(self.blocks)

    def apply_plan(self, plan: "MergePlan") -> None:
        """Concatenate the blocks grouped by ``plan``."""

        merged: List[Circuit] = []
        for span in plan.spans:
            circuit = Circuit()
            for block in self.blocks[span.start:span.end]:
                circuit.merge(block.copy())
            merged.append(circuit)
        self.blocks = merged

    def _prepend_to_next(self, index: int, cliffords: Circuit) -> None:
        if index == len(self.blocks) - 1:
            self.back = cliffords.merge(self.back)
        else:
            self.blocks[index + 1] = cliffords.merge(self.blocks[index + 1])

    def to_cnot_phase(self, next_id: int | None = None) -> int:
        """Rewrite every functional block into CNOT and phase gates only.

        Hadamards inside functional blocks are gadgetized with fresh ancillas
        starting at ``next_id`` (the full qubit count by default).  Blocks are
        visited from last to first.  The Pauli-X correction of each block is
        prepended to the following Clifford block, or to ``back``.  Returns
        the next unused qubit index.
        """

        from .decompositions import to_cnot_phase
        from .hadamard import decompose_hadamards

        if next_id is None:
            next_id = self.num_qubits
        for i in reversed(range(0, len(self.blocks), 2)):
            gadgets = decompose_hadamards(self.blocks[i], next_id)
            next_id = gadgets.next_id
            for ancilla in gadgets.ancillas:
                self.front.gates.append(H(ancilla))
                self.back.gates.append(H(ancilla))
            block, x_correction = to_cnot_phase(gadgets.block)
            self.blocks[i] = block
            self._prepend_to_next(i, x_correction)
        return next_id

    def extract_gadgets(self) -> List[Tuple[List[int], np.ndarray]]:
        """Diagonalize every functional block and return its synthesis data.

        Each functional block is replaced by its T-only diagonal and the
        Clifford remainder is prepended to the following Clifford block.
        Returns one ``(qubits, matrix)`` pair per functional block.
        """

        from .extract import extract_gadgets

        matrices: List[Tuple[List[int], np.ndarray]] = []
        for i in range(0, len(self.blocks), 2):
            extraction = extract_gadgets(self.blocks[i])
            matrices.append((extraction.qubits, extraction.matrix))
            self.blocks[i] = extraction.diagonal
            self._prepend_to_next(i, extraction.cliffords)
        return matrices


__all__ = [
    "pull_gates",
    "extract_cliffords",
    "partition",
    "PartitionedCircuit",
]
