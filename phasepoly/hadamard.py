"""Hadamard gadgetization and the interface to external Hadamard minimizers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Tuple
import logging

from .circuit import CCZ, CNOT, CS, CZ, H, SWAP, Circuit, Gate, Phase, PhaseGate, X

LOGGER = logging.getLogger(__name__)

#: Gate in the minimizer vocabulary, e.g. ``("cx", [0, 1])``.
NamedGate = Tuple[str, List[int]]
#: Black-box Hadamard minimizer operating on the named-gate vocabulary.
Minimizer = Callable[[int, List[NamedGate]], Sequence[NamedGate]]


@dataclass
class HadamardGadgets:
    """Result of :func:`decompose_hadamards`.

    Attributes
    ----------
    block:
        Block with every ``H`` replaced by a ``SWAP``/``CZ`` gadget.
    ancillas:
        Fresh ancilla qubits in allocation order.  Each needs an ``H`` in the
        global front and back Clifford circuits.
    next_id:
        First qubit index not yet allocated.
    """

    block: Circuit
    ancillas: List[int]
    next_id: int


def decompose_hadamards(block: Circuit, next_id: int) -> HadamardGadgets:
    """Replace every ``H(q)`` in ``block`` with ``SWAP(n, q); CZ(n, q)``.

    ``n`` is a fresh ancilla taken from ``next_id`` onwards.  The ancilla is
    prepared in ``|+>`` and post-selected on ``<+|``, which the caller
    realises by adding ``H(n)`` to the global front and back circuits.
    """

    gates: List[Gate] = []
    ancillas: List[int] = []
    for gate in block.gates:
        if isinstance(gate, H):
            ancilla = next_id
            next_id += 1
            ancillas.append(ancilla)
            gates.append(SWAP(ancilla, gate.qubit))
            gates.append(CZ(ancilla, gate.qubit))
        else:
            gates.append(gate)
    return HadamardGadgets(Circuit(gates), ancillas, next_id)


_PHASE_NAMES: Dict[int, Tuple[str, ...]] = {
    0: (),
    1: ("t",),
    2: ("s",),
    3: ("s", "t"),
    4: ("z",),
    5: ("z", "t"),
    6: ("z", "s"),
    7: ("z", "s", "t"),
}


def to_named_gates(circuit: Circuit) -> List[NamedGate]:
    """Translate ``circuit`` into the ``z s t h x cx ccz`` vocabulary."""

    out: List[NamedGate] = []
    for gate in circuit.gates:
        if isinstance(gate, PhaseGate):
            out.extend((name, [gate.qubit]) for name in _PHASE_NAMES[gate.phase.value])
        elif isinstance(gate, X):
            out.append(("x", [gate.qubit]))
        elif isinstance(gate, H):
            out.append(("h", [gate.qubit]))
        elif isinstance(gate, CNOT):
            out.append(("cx", [gate.control, gate.target]))
        elif isinstance(gate, CZ):
            a, b = gate.a, gate.b
            out.extend(
                [
                    ("s", [a]),
                    ("s", [b]),
                    ("cx", [a, b]),
                    ("z", [b]),
                    ("s", [b]),
                    ("cx", [a, b]),
                ]
            )
        elif isinstance(gate, CS):
            a, b = gate.a, gate.b
            out.extend(
                [
                    ("t", [a]),
                    ("t", [b]),
                    ("cx", [a, b]),
                    ("z", [b]),
                    ("s", [b]),
                    ("t", [b]),
                    ("cx", [a, b]),
                ]
            )
        elif isinstance(gate, CCZ):
            out.append(("ccz", list(gate.qubits)))
        elif isinstance(gate, SWAP):
            a, b = gate.a, gate.b
            out.extend([("cx", [a, b]), ("cx", [b, a]), ("cx", [a, b])])
        else:  # pragma: no cover - closed vocabulary
            raise TypeError(f"Unsupported gate {gate!r}")
    return out


def from_named_gates(named: Sequence[NamedGate]) -> Circuit:
    """Translate the minimizer vocabulary back into a :class:`Circuit`.

    ``tof`` is accepted as ``H(c); CCZ(a, b, c); H(c)``.
    """

    gates: List[Gate] = []
    for name, qubits in named:
        if name == "z":
            gates.append(PhaseGate(Phase.Z, qubits[0]))
        elif name == "s":
            gates.append(PhaseGate(Phase.S, qubits[0]))
        elif name == "t":
            gates.append(PhaseGate(Phase.T, qubits[0]))
        elif name == "h":
            gates.append(H(qubits[0]))
        elif name == "x":
            gates.append(X(qubits[0]))
        elif name == "cx":
            gates.append(CNOT(qubits[0], qubits[1]))
        elif name == "ccz":
            gates.append(CCZ(qubits[0], qubits[1], qubits[2]))
        elif name == "tof":
            gates.append(H(qubits[2]))
            gates.append(CCZ(qubits[0], qubits[1], qubits[2]))
            gates.append(H(qubits[2]))
        else:
            raise ValueError(f"Unexpected gate {name!r} returned by the Hadamard minimizer")
    return Circuit(gates)


def move_h_optimal(circuit: Circuit, minimizer: Minimizer | None) -> Circuit:
    """Minimize internal Hadamards of ``circuit`` with an external routine.

    The minimizer is called as ``minimizer(num_qubits, gates)`` on the named
    vocabulary and must return an equivalent gate list.  The circuit is
    replaced in place and returned.  Without a minimizer the pass is skipped.
    """

    if minimizer is None:
        LOGGER.debug("No Hadamard minimizer configured; skipping")
        return circuit
    optimized = minimizer(circuit.num_qubits, to_named_gates(circuit))
    circuit.gates = from_named_gates(optimized).gates
    return circuit


__all__ = [
    "HadamardGadgets",
    "decompose_hadamards",
    "to_named_gates",
    "from_named_gates",
    "move_h_optimal",
]
