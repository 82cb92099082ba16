"""Reader and writer for the ``.qc`` circuit format.

A ``.qc`` file declares its qubit labels on a ``.v`` line, the primary inputs
on a ``.i`` line and lists one gate per line between ``BEGIN`` and ``END``::

    .v 0 1 2
    .i 0 1
    BEGIN
    H 2
    tof 0 1 2
    END

Qubits declared with ``.v`` but missing from ``.i`` are ancillas initialised in
``|0>``.  The writer only uses gates understood by equivalence checkers that
consume this format, so ``CZ``, ``CS`` and ``CCZ`` are expanded.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Tuple

from .circuit import CCZ, CNOT, CS, CZ, H, SWAP, Circuit, Gate, Phase, PhaseGate, X
from .errors import ParseError

_PHASE_LINES: Dict[int, Tuple[str, ...]] = {
    0: (),
    1: ("T",),
    2: ("S",),
    3: ("S", "T"),
    4: ("Z",),
    5: ("Z", "T"),
    6: ("Z", "S"),
    7: ("Z", "S", "T"),
}


def _gate_lines(gate: Gate) -> List[str]:
    if isinstance(gate, X):
        return [f"X {gate.qubit}"]
    if isinstance(gate, H):
        return [f"H {gate.qubit}"]
    if isinstance(gate, PhaseGate):
        return [f"{name} {gate.qubit}" for name in _PHASE_LINES[gate.phase.value]]
    if isinstance(gate, CNOT):
        return [f"cnot {gate.control} {gate.target}"]
    if isinstance(gate, CZ):
        p, q = gate.a, gate.b
        return [f"H {q}", f"cnot {p} {q}", f"H {q}"]
    if isinstance(gate, CS):
        p, q = gate.a, gate.b
        return [
            f"cnot {p} {q}",
            f"Z {q}",
            f"S {q}",
            f"T {q}",
            f"cnot {p} {q}",
            f"T {p}",
            f"T {q}",
        ]
    if isinstance(gate, CCZ):
        p, q, r = gate.qubits
        return [f"H {r}", f"tof {p} {q} {r}", f"H {r}"]
    if isinstance(gate, SWAP):
        a, b = gate.a, gate.b
        return [f"cnot {a} {b}", f"cnot {b} {a}", f"cnot {a} {b}"]
    raise TypeError(f"Unsupported gate {gate!r}")


def dumps(circuit: Circuit, qubits: int | None = None) -> str:
    """Render ``circuit`` as ``.qc`` text.

    Parameters
    ----------
    circuit:
        Circuit to render.
    qubits:
        Number of leading qubits listed as primary inputs.  All qubits are
        inputs when omitted.
    """

    n = max(circuit.num_qubits, qubits or 0, 1)
    if qubits is None:
        qubits = n
    body: List[str] = []
    for gate in circuit.gates:
        body.extend(_gate_lines(gate))
    lines = [
        ".v " + " ".join(str(i) for i in range(n)),
        ".i " + " ".join(str(i) for i in range(qubits)),
        "BEGIN",
        *body,
        "END",
    ]
    return "\n".join(lines) + "\n"


_Builder = Callable[[List[int]], List[Gate]]

_GATES: Dict[str, Tuple[int, _Builder]] = {
    "T": (1, lambda a: [PhaseGate(Phase(1), a[0])]),
    "T*": (1, lambda a: [PhaseGate(Phase(7), a[0])]),
    "S": (1, lambda a: [PhaseGate(Phase(2), a[0])]),
    "S*": (1, lambda a: [PhaseGate(Phase(6), a[0])]),
    "Z": (1, lambda a: [PhaseGate(Phase(4), a[0])]),
    "H": (1, lambda a: [H(a[0])]),
    "X": (1, lambda a: [X(a[0])]),
    "not": (1, lambda a: [X(a[0])]),
    "cz": (2, lambda a: [CZ(a[0], a[1])]),
    "cnot": (2, lambda a: [CNOT(a[0], a[1])]),
    "swap": (2, lambda a: [SWAP(a[0], a[1])]),
    "tof": (3, lambda a: [H(a[2]), CCZ(a[0], a[1], a[2]), H(a[2])]),
}


def loads(source: str) -> Circuit:
    """Parse ``.qc`` text into a :class:`Circuit`.

    Qubit labels are numbered in order of their ``.v`` declaration.

    Raises
    ------
    ParseError
        For unknown gate names, undeclared labels or a wrong number of
        arguments.  The error carries the offending line.
    """

    labels: Dict[str, int] = {}
    gates: List[Gate] = []
    for lineno, raw in enumerate(source.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith(("#", "BEGIN", "END", ".i", ".o")):
            continue
        if line.startswith(".v"):
            for label in line[2:].split():
                labels.setdefault(label, len(labels))
            continue
        name, *args = line.split()
        entry = _GATES.get(name)
        if entry is None:
            raise ParseError(f"Unknown gate name {name!r}", line=lineno, source=raw)
        arity, build = entry
        if len(args) != arity:
            raise ParseError(
                f"Unexpected arity {len(args)} for gate {name!r}, expected {arity}",
                line=lineno,
                source=raw,
            )
        try:
            qubits = [labels[arg] for arg in args]
        except KeyError as exc:
            raise ParseError(
                f"Unexpected qubit label {exc.args[0]!r}", line=lineno, source=raw
            ) from None
        gates.extend(build(qubits))
    return Circuit(gates)


__all__ = ["dumps", "loads"]
