from __future__ import annotations

from typing import Callable, Sequence

import numpy as np
import pytest

from phasepoly.circuit import CCZ, CNOT, CS, CZ, H, SWAP, Circuit, Gate, Phase, PhaseGate, X

ALL_KINDS = ("x", "h", "phase", "cnot", "cz", "cs", "ccz", "swap")


def _make_random_circuit(
    num_qubits: int,
    num_gates: int,
    seed: int,
    kinds: Sequence[str] = ALL_KINDS,
    max_hadamards: int | None = None,
) -> Circuit:
    """Return a reproducible random circuit over the given gate kinds."""

    rng = np.random.default_rng(seed)
    gates: list[Gate] = []
    hadamards = 0
    while len(gates) < num_gates:
        kind = kinds[int(rng.integers(len(kinds)))]
        if kind in {"ccz"} and num_qubits < 3:
            continue
        if kind in {"cnot", "cz", "cs", "swap"} and num_qubits < 2:
            continue
        qubits = [int(q) for q in rng.permutation(num_qubits)[:3]]
        if kind == "x":
            gates.append(X(qubits[0]))
        elif kind == "h":
            if max_hadamards is not None and hadamards >= max_hadamards:
                continue
            hadamards += 1
            gates.append(H(qubits[0]))
        elif kind == "phase":
            gates.append(PhaseGate(Phase(int(rng.integers(1, 8))), qubits[0]))
        elif kind == "cnot":
            gates.append(CNOT(qubits[0], qubits[1]))
        elif kind == "cz":
            gates.append(CZ(qubits[0], qubits[1]))
        elif kind == "cs":
            gates.append(CS(qubits[0], qubits[1]))
        elif kind == "ccz":
            gates.append(CCZ(qubits[0], qubits[1], qubits[2]))
        elif kind == "swap":
            gates.append(SWAP(qubits[0], qubits[1]))
    return Circuit(gates)


@pytest.fixture
def random_circuit() -> Callable[..., Circuit]:
    return _make_random_circuit
