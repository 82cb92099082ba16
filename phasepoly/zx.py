"""Optional ZX-calculus pre-optimization through :mod:`pyzx`."""

from __future__ import annotations

from fractions import Fraction
from typing import List
import logging

import pyzx as zx

from .circuit import CCZ, CNOT, CS, CZ, H, SWAP, Circuit, Gate, Phase, PhaseGate, X
from .errors import ExternalToolError

LOGGER = logging.getLogger(__name__)


def to_pyzx(circuit: Circuit) -> zx.Circuit:
    """Translate ``circuit`` into a :class:`pyzx.Circuit`."""

    out = zx.Circuit(max(circuit.num_qubits, 1))
    for gate in circuit.gates:
        if isinstance(gate, H):
            out.add_gate("HAD", gate.qubit)
        elif isinstance(gate, X):
            out.add_gate("NOT", gate.qubit)
        elif isinstance(gate, PhaseGate):
            if gate.phase.value:
                out.add_gate("ZPhase", gate.qubit, phase=Fraction(gate.phase.value, 4))
        elif isinstance(gate, CNOT):
            out.add_gate("CNOT", gate.control, gate.target)
        elif isinstance(gate, CZ):
            out.add_gate("CZ", gate.a, gate.b)
        elif isinstance(gate, SWAP):
            out.add_gate("SWAP", gate.a, gate.b)
        elif isinstance(gate, CCZ):
            out.add_gate("CCZ", gate.a, gate.b, gate.c)
        elif isinstance(gate, CS):
            a, b = gate.a, gate.b
            out.add_gate("CNOT", a, b)
            out.add_gate("ZPhase", b, phase=Fraction(7, 4))
            out.add_gate("CNOT", a, b)
            out.add_gate("ZPhase", a, phase=Fraction(1, 4))
            out.add_gate("ZPhase", b, phase=Fraction(1, 4))
        else:  # pragma: no cover - closed vocabulary
            raise TypeError(f"Unsupported gate {gate!r}")
    return out


def _phase(value: Fraction) -> Phase:
    steps = Fraction(value) * 4
    if steps.denominator != 1:
        raise ExternalToolError(f"pyzx produced the non Clifford+T phase {value}")
    return Phase(int(steps) % 8)


def from_pyzx(circuit: zx.Circuit) -> Circuit:
    """Translate a :class:`pyzx.Circuit` back into a :class:`Circuit`."""

    gates: List[Gate] = []
    for gate in circuit.gates:
        name = gate.name
        if name == "HAD":
            gates.append(H(gate.target))
        elif name == "NOT":
            gates.append(X(gate.target))
        elif name in {"ZPhase", "Z", "S", "T"}:
            phase = _phase(gate.phase)
            if phase.value:
                gates.append(PhaseGate(phase, gate.target))
        elif name == "XPhase":
            phase = _phase(gate.phase)
            if phase.value:
                gates.extend([H(gate.target), PhaseGate(phase, gate.target), H(gate.target)])
        elif name == "CNOT":
            gates.append(CNOT(gate.control, gate.target))
        elif name == "CZ":
            gates.append(CZ(gate.control, gate.target))
        elif name == "SWAP":
            gates.append(SWAP(gate.control, gate.target))
        elif name == "CCZ":
            gates.append(CCZ(gate.ctrl1, gate.ctrl2, gate.target))
        else:
            raise ExternalToolError(f"pyzx produced the unsupported gate {name!r}")
    return Circuit(gates)


def full_reduce(circuit: Circuit) -> Circuit:
    """Simplify ``circuit`` with ``pyzx.full_reduce`` and extract it again.

    Raises
    ------
    ExternalToolError
        If simplification or extraction fails.
    """

    try:
        graph = to_pyzx(circuit).to_graph()
        zx.full_reduce(graph)
        extracted = zx.extract_circuit(graph.copy()).to_basic_gates()
    except Exception as exc:  # pyzx raises a variety of exception types
        raise ExternalToolError(f"ZX simplification failed: {exc}") from exc
    return from_pyzx(extracted)


def preoptimize(circuit: Circuit) -> Circuit:
    """Return a ZX-simplified copy of ``circuit``.

    On failure the input circuit is returned unchanged and a warning logged.
    """

    try:
        optimized = full_reduce(circuit)
    except ExternalToolError as exc:
        LOGGER.warning("%s; skipping ZX pre-optimization", exc)
        return circuit
    LOGGER.info(
        "ZX pre-optimization: tcount %d => %d", circuit.tcount(), optimized.tcount()
    )
    return optimized


__all__ = ["to_pyzx", "from_pyzx", "full_reduce", "preoptimize"]
