"""Gate and circuit representation for phasepoly."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, ClassVar, Dict, Iterable, Iterator, List, Mapping, Tuple, Type, TYPE_CHECKING
import json
import math
import numbers
import os
import re

from qiskit import QuantumCircuit, qasm2
from qiskit.circuit.library import CCZGate, CSGate

from .errors import ParseError

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .partitioner import PartitionedCircuit


@dataclass(frozen=True)
class Phase:
    """Diagonal rotation by ``value * pi / 4``.

    Phases form the cyclic group of order eight.  Even values are the Clifford
    phases ``I``, ``S``, ``Z`` and ``S^dagger``.
    """

    value: int = 0

    T: ClassVar["Phase"]
    S: ClassVar["Phase"]
    Z: ClassVar["Phase"]

    def __post_init__(self) -> None:
        if not isinstance(self.value, numbers.Integral) or not 0 <= self.value < 8:
            raise ValueError(f"unknown phase {self.value!r}")
        object.__setattr__(self, "value", int(self.value))

    def is_clifford(self) -> bool:
        return self.value % 2 == 0

    def __neg__(self) -> "Phase":
        return Phase((8 - self.value) % 8)

    def __add__(self, other: "Phase") -> "Phase":
        return Phase((self.value + other.value) % 8)

    def __sub__(self, other: "Phase") -> "Phase":
        return Phase((self.value + 8 - other.value) % 8)

    def __int__(self) -> int:
        return self.value


Phase.T = Phase(1)
Phase.S = Phase(2)
Phase.Z = Phase(4)


class Gate:
    """Base class of the closed gate vocabulary.

    Every gate reports the qubits it touches, whether it belongs to the
    Clifford group and how to relabel its qubits.  Concrete gates are frozen
    dataclasses, so rewriting passes always build new gates instead of
    mutating shared ones.
    """

    name: ClassVar[str] = ""

    @property
    def qubits(self) -> Tuple[int, ...]:
        raise NotImplementedError

    def is_clifford(self) -> bool:
        return True

    def map_qubits(self, f: Callable[[int], int]) -> "Gate":
        raise NotImplementedError

    def overlaps(self, other: "Gate") -> bool:
        """Return ``True`` if ``self`` and ``other`` share a qubit."""

        return not set(self.qubits).isdisjoint(other.qubits)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable representation of the gate."""

        return {"gate": self.name, "qubits": list(self.qubits)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Gate":
        """Create a gate from the mapping produced by :meth:`to_dict`."""

        name = str(data["gate"]).upper()
        qubits = [int(q) for q in data["qubits"]]
        gate_cls = _GATE_TYPES.get(name)
        if gate_cls is None:
            raise ValueError(f"Unknown gate {name!r}")
        if gate_cls is PhaseGate:
            params = data.get("params", {})
            return PhaseGate(Phase(int(params.get("phase", 0))), *qubits)
        return gate_cls(*qubits)

    def __json__(self) -> Dict[str, Any]:  # pragma: no cover - exercised indirectly
        return self.to_dict()


@dataclass(frozen=True)
class X(Gate):
    qubit: int
    name: ClassVar[str] = "X"

    @property
    def qubits(self) -> Tuple[int, ...]:
        return (self.qubit,)

    def map_qubits(self, f: Callable[[int], int]) -> "X":
        return replace(self, qubit=f(self.qubit))


@dataclass(frozen=True)
class H(Gate):
    qubit: int
    name: ClassVar[str] = "H"

    @property
    def qubits(self) -> Tuple[int, ...]:
        return (self.qubit,)

    def map_qubits(self, f: Callable[[int], int]) -> "H":
        return replace(self, qubit=f(self.qubit))


@dataclass(frozen=True)
class PhaseGate(Gate):
    """Diagonal phase ``diag(1, exp(i * phase * pi / 4))`` on one qubit."""

    phase: Phase
    qubit: int
    name: ClassVar[str] = "PHASE"

    @property
    def qubits(self) -> Tuple[int, ...]:
        return (self.qubit,)

    def is_clifford(self) -> bool:
        return self.phase.is_clifford()

    def map_qubits(self, f: Callable[[int], int]) -> "PhaseGate":
        return replace(self, qubit=f(self.qubit))

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["params"] = {"phase": self.phase.value}
        return data


@dataclass(frozen=True)
class CNOT(Gate):
    control: int
    target: int
    name: ClassVar[str] = "CNOT"

    @property
    def qubits(self) -> Tuple[int, ...]:
        return (self.control, self.target)

    def map_qubits(self, f: Callable[[int], int]) -> "CNOT":
        return CNOT(f(self.control), f(self.target))


@dataclass(frozen=True)
class CZ(Gate):
    a: int
    b: int
    name: ClassVar[str] = "CZ"

    @property
    def qubits(self) -> Tuple[int, ...]:
        return (self.a, self.b)

    def map_qubits(self, f: Callable[[int], int]) -> "CZ":
        return CZ(f(self.a), f(self.b))


@dataclass(frozen=True)
class CS(Gate):
    """Controlled-S, ``diag(1, 1, 1, i)``."""

    a: int
    b: int
    name: ClassVar[str] = "CS"

    @property
    def qubits(self) -> Tuple[int, ...]:
        return (self.a, self.b)

    def is_clifford(self) -> bool:
        return False

    def map_qubits(self, f: Callable[[int], int]) -> "CS":
        return CS(f(self.a), f(self.b))


@dataclass(frozen=True)
class CCZ(Gate):
    a: int
    b: int
    c: int
    name: ClassVar[str] = "CCZ"

    @property
    def qubits(self) -> Tuple[int, ...]:
        return (self.a, self.b, self.c)

    def is_clifford(self) -> bool:
        return False

    def map_qubits(self, f: Callable[[int], int]) -> "CCZ":
        return CCZ(f(self.a), f(self.b), f(self.c))


@dataclass(frozen=True)
class SWAP(Gate):
    a: int
    b: int
    name: ClassVar[str] = "SWAP"

    @property
    def qubits(self) -> Tuple[int, ...]:
        return (self.a, self.b)

    def map_qubits(self, f: Callable[[int], int]) -> "SWAP":
        return SWAP(f(self.a), f(self.b))


_GATE_TYPES: Dict[str, Type[Gate]] = {
    cls.name: cls for cls in (X, H, PhaseGate, CNOT, CZ, CS, CCZ, SWAP)
}

# OpenQASM spellings of the single-qubit phases, shortest sequence first.
_QASM_PHASES: Dict[int, Tuple[str, ...]] = {
    0: (),
    1: ("t",),
    2: ("s",),
    3: ("s", "t"),
    4: ("z",),
    5: ("z", "t"),
    6: ("sdg",),
    7: ("tdg",),
}

_NAMED_PHASES = {"t": 1, "s": 2, "z": 4, "sdg": 6, "tdg": 7}
_ROTATIONS = {"p", "u1", "rz"}
_IGNORED = {"barrier", "id", "delay"}


def _declares(text: str, name: str) -> bool:
    return re.search(rf"\b(?:gate|opaque)\s+{name}\b", text) is not None


def _phase_from_angle(angle: float) -> Phase:
    """Return the phase for a rotation angle that is a multiple of pi/4."""

    steps = angle / (math.pi / 4)
    if not math.isclose(steps, round(steps), abs_tol=1e-9):
        raise ParseError(f"rotation by {angle} is not a multiple of pi/4")
    return Phase(int(round(steps)) % 8)


class Circuit:
    """Ordered sequence of gates.

    A circuit is owned by whichever pass currently holds it; passes either
    mutate it in place or consume it and return fresh circuits.

    Parameters
    ----------
    gates:
        Iterable of :class:`Gate` instances or dictionaries produced by
        :meth:`Gate.to_dict`.
    """

    def __init__(self, gates: Iterable[Gate | Mapping[str, Any]] = ()):
        self.gates: List[Gate] = [
            g if isinstance(g, Gate) else Gate.from_dict(g) for g in gates
        ]

    def __len__(self) -> int:
        return len(self.gates)

    def __iter__(self) -> Iterator[Gate]:
        return iter(self.gates)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Circuit):
            return NotImplemented
        return self.gates == other.gates

    def __repr__(self) -> str:
        return f"Circuit({self.gates!r})"

    def copy(self) -> "Circuit":
        return Circuit(self.gates)

    def merge(self, other: "Circuit") -> "Circuit":
        """Append the gates of ``other`` after this circuit and return ``self``."""

        self.gates.extend(other.gates)
        return self

    # ------------------------------------------------------------------
    # Resource counts
    # ------------------------------------------------------------------
    @property
    def num_qubits(self) -> int:
        """Largest touched qubit index plus one."""

        return max((q for gate in self.gates for q in gate.qubits), default=-1) + 1

    def tcount(self) -> int:
        """Number of non-Clifford single-qubit phase gates."""

        return sum(
            1 for g in self.gates if isinstance(g, PhaseGate) and not g.phase.is_clifford()
        )

    def count_hadamards(self) -> int:
        """Number of ``H`` gates, including unobstructed ones."""

        return sum(1 for g in self.gates if isinstance(g, H))

    def hcount_accurate(self) -> int:
        """Number of ``H`` gates left after extracting the outer Cliffords."""

        from .partitioner import extract_cliffords

        circuit = self.copy()
        extract_cliffords(circuit)
        return circuit.count_hadamards()

    def partition(self) -> "PartitionedCircuit":
        """Split a copy of the circuit into alternating blocks."""

        from .partitioner import partition

        return partition(self.copy())

    # ------------------------------------------------------------------
    # JSON serialisation helpers
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable representation of the circuit."""

        return {
            "num_qubits": self.num_qubits,
            "gates": [gate.to_dict() for gate in self.gates],
        }

    def to_json(self, path: str | os.PathLike[str] | None = None, **json_kwargs: Any) -> str:
        """Serialise the circuit to JSON and optionally write it to ``path``."""

        text = json.dumps(self.to_dict(), **json_kwargs)
        if path is not None:
            with open(os.fspath(path), "w", encoding="utf8") as fh:
                fh.write(text)
        return text

    @classmethod
    def from_dict(cls, data: Iterable[Mapping[str, Any]] | Mapping[str, Any]) -> "Circuit":
        """Build a circuit from an iterable of gate dictionaries or a mapping."""

        if isinstance(data, Mapping):
            gates = data.get("gates")
            if gates is None:
                raise ValueError("Circuit dictionary must contain a 'gates' entry")
            return cls(gates)
        return cls(data)

    @classmethod
    def from_json(cls, path: str | os.PathLike[str]) -> "Circuit":
        with open(os.fspath(path), "r", encoding="utf8") as fh:
            return cls.from_dict(json.load(fh))

    # ------------------------------------------------------------------
    # Qiskit and OpenQASM 2
    # ------------------------------------------------------------------
    def to_qiskit(self, num_qubits: int | None = None) -> QuantumCircuit:
        """Return an equivalent :class:`~qiskit.QuantumCircuit`.

        ``num_qubits`` widens the register beyond the touched qubits.
        """

        n = max(self.num_qubits, num_qubits or 0)
        qc = QuantumCircuit(n)
        for gate in self.gates:
            if isinstance(gate, X):
                qc.x(gate.qubit)
            elif isinstance(gate, H):
                qc.h(gate.qubit)
            elif isinstance(gate, PhaseGate):
                if gate.phase.value:
                    qc.p(gate.phase.value * math.pi / 4, gate.qubit)
            elif isinstance(gate, CNOT):
                qc.cx(gate.control, gate.target)
            elif isinstance(gate, CZ):
                qc.cz(gate.a, gate.b)
            elif isinstance(gate, CS):
                qc.cs(gate.a, gate.b)
            elif isinstance(gate, CCZ):
                qc.ccz(gate.a, gate.b, gate.c)
            elif isinstance(gate, SWAP):
                qc.swap(gate.a, gate.b)
            else:  # pragma: no cover - closed vocabulary
                raise TypeError(f"Unsupported gate {gate!r}")
        return qc

    @classmethod
    def from_qiskit(cls, circuit: QuantumCircuit) -> "Circuit":
        """Build a :class:`Circuit` from a Qiskit ``QuantumCircuit``.

        Gates without a direct counterpart are expanded through their
        definitions.  Rotations must be multiples of pi/4.

        Raises
        ------
        ParseError
            If the circuit contains measurements, resets, conditionals or
            rotations outside the Clifford+T group.
        """

        gates: List[Gate] = []
        for instruction in circuit.data:
            qubits = [circuit.find_bit(q).index for q in instruction.qubits]
            _append_operation(gates, instruction.operation, qubits)
        return cls(gates)

    def to_qasm(self, opaque: bool = False) -> str:
        """Translate the circuit to OpenQASM 2.0.

        With ``opaque=True`` opaque declarations of ``ccz`` and ``cs`` are
        emitted so that strict parsers accept the program.
        """

        lines = ["OPENQASM 2.0;", 'include "qelib1.inc";']
        if opaque:
            lines.append("opaque ccz a, b, c;")
            lines.append("opaque cs a, b;")
        lines.append(f"qreg q[{max(self.num_qubits, 1)}];")
        for gate in self.gates:
            if isinstance(gate, X):
                lines.append(f"x q[{gate.qubit}];")
            elif isinstance(gate, H):
                lines.append(f"h q[{gate.qubit}];")
            elif isinstance(gate, PhaseGate):
                lines.extend(f"{name} q[{gate.qubit}];" for name in _QASM_PHASES[gate.phase.value])
            elif isinstance(gate, CNOT):
                lines.append(f"cx q[{gate.control}], q[{gate.target}];")
            elif isinstance(gate, CZ):
                lines.append(f"cz q[{gate.a}], q[{gate.b}];")
            elif isinstance(gate, CS):
                lines.append(f"cs q[{gate.a}], q[{gate.b}];")
            elif isinstance(gate, CCZ):
                lines.append(f"ccz q[{gate.a}], q[{gate.b}], q[{gate.c}];")
            elif isinstance(gate, SWAP):
                lines.append(f"cx q[{gate.a}], q[{gate.b}];")
                lines.append(f"cx q[{gate.b}], q[{gate.a}];")
                lines.append(f"cx q[{gate.a}], q[{gate.b}];")
            else:  # pragma: no cover - closed vocabulary
                raise TypeError(f"Unsupported gate {gate!r}")
        return "\n".join(lines) + "\n"

    @classmethod
    def from_qasm(cls, path_or_str: str | os.PathLike[str], opaque: bool = False) -> "Circuit":
        """Build a :class:`Circuit` from an OpenQASM 2 string or file.

        Parameters
        ----------
        path_or_str:
            Either a filesystem path to an OpenQASM 2 file or the program text.
        opaque:
            When ``True`` the gates ``ccz`` and ``cs`` may be used without
            being declared.  Otherwise the program has to declare them (as
            ``gate`` or ``opaque``) and the declaration is replaced by the
            native gate.
        """

        if os.path.exists(path_or_str):
            with open(os.fspath(path_or_str), "r", encoding="utf8") as fh:
                text = fh.read()
        else:
            text = str(path_or_str)
        # Declarations in the program take precedence over the built-in versions.
        custom = [
            qasm2.CustomInstruction(
                "ccz", 0, 3, CCZGate, builtin=opaque and not _declares(text, "ccz")
            ),
            qasm2.CustomInstruction(
                "cs", 0, 2, CSGate, builtin=opaque and not _declares(text, "cs")
            ),
        ]
        try:
            qc = qasm2.loads(text, custom_instructions=custom)
        except qasm2.QASM2ParseError as exc:
            raise ParseError(str(exc)) from exc
        return cls.from_qiskit(qc)

    # ------------------------------------------------------------------
    # .qc format
    # ------------------------------------------------------------------
    def to_qc(self, qubits: int | None = None) -> str:
        """Translate the circuit to the ``.qc`` format.

        ``qubits`` is the number of leading qubits treated as non-ancilla.
        """

        from .qc import dumps

        return dumps(self, qubits)

    @classmethod
    def from_qc(cls, source: str) -> "Circuit":
        from .qc import loads

        return loads(source)


def _append_operation(gates: List[Gate], op: Any, qubits: List[int]) -> None:
    """Translate one Qiskit operation acting on ``qubits`` into ``gates``."""

    name = op.name.lower()
    if getattr(op, "condition", None) is not None:
        raise ParseError(f"conditional {name} is not supported")
    if name in _IGNORED:
        return
    if name in _NAMED_PHASES:
        gates.append(PhaseGate(Phase(_NAMED_PHASES[name]), qubits[0]))
    elif name in _ROTATIONS:
        gates.append(PhaseGate(_phase_from_angle(float(op.params[0])), qubits[0]))
    elif name == "x":
        gates.append(X(qubits[0]))
    elif name == "h":
        gates.append(H(qubits[0]))
    elif name in {"cx", "cnot"}:
        gates.append(CNOT(qubits[0], qubits[1]))
    elif name == "cz":
        gates.append(CZ(qubits[0], qubits[1]))
    elif name == "cs":
        gates.append(CS(qubits[0], qubits[1]))
    elif name == "ccz":
        gates.append(CCZ(qubits[0], qubits[1], qubits[2]))
    elif name == "swap":
        gates.append(SWAP(qubits[0], qubits[1]))
    elif name == "ccx":
        gates.append(H(qubits[2]))
        gates.append(CCZ(qubits[0], qubits[1], qubits[2]))
        gates.append(H(qubits[2]))
    elif name in {"measure", "reset", "u", "u2", "u3"}:
        raise ParseError(f"{name} is not supported")
    elif getattr(op, "definition", None) is not None:
        definition = op.definition
        for instruction in definition.data:
            inner = [qubits[definition.find_bit(q).index] for q in instruction.qubits]
            _append_operation(gates, instruction.operation, inner)
    else:
        raise ParseError(f"Unexpected gate {name!r}; this is not supported")


__all__ = [
    "Phase",
    "Gate",
    "X",
    "H",
    "PhaseGate",
    "CNOT",
    "CZ",
    "CS",
    "CCZ",
    "SWAP",
    "Circuit",
]
