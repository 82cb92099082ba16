"""Equivalence checks between circuits.

:func:`check_equivalence` delegates to the external ``feynver`` checker and is
what the compilation driver uses.  :func:`unitary_equivalent` and
:func:`cliffords_equal` compare small circuits directly and back the tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import logging
import subprocess
import tempfile

import numpy as np
import stim
from qiskit.quantum_info import Operator

from .circuit import CNOT, CZ, H, SWAP, Circuit, PhaseGate, X
from . import config

LOGGER = logging.getLogger(__name__)


@dataclass
class VerificationResult:
    """Outcome of an equivalence check.

    ``output`` holds the checker's report, or a description of why no
    verdict could be obtained.
    """

    equal: bool
    output: str


def check_equivalence(
    original: Circuit,
    new: Circuit,
    qubits: int | None = None,
    *,
    binary: str | None = None,
    timeout: float | None = None,
) -> VerificationResult:
    """Check ``original`` and ``new`` for equality with ``feynver``.

    Both circuits are written in ``.qc`` format with the first ``qubits``
    qubits as inputs.  Extra qubits of ``new`` are ancillas post-selected on
    ``|0>``; global phases are ignored.  A missing binary or a timeout yields
    ``equal=False`` with a description instead of a verdict.
    """

    if binary is None:
        binary = config.DEFAULT.feynver
    if timeout is None:
        timeout = config.DEFAULT.verify_timeout
    if qubits is None:
        qubits = original.num_qubits

    with tempfile.TemporaryDirectory() as tmp:
        first = Path(tmp) / "circ1.qc"
        second = Path(tmp) / "circ2.qc"
        first.write_text(original.to_qc(qubits), encoding="utf8")
        second.write_text(new.to_qc(qubits), encoding="utf8")
        command = [binary, "-postselect-ancillas", "-ignore-global-phase", str(first), str(second)]
        try:
            proc = subprocess.run(
                command, capture_output=True, text=True, timeout=timeout, check=False
            )
        except FileNotFoundError:
            message = f"equivalence checker {binary!r} not found"
            LOGGER.warning(message)
            return VerificationResult(False, message)
        except subprocess.TimeoutExpired:
            message = f"equivalence checker timed out after {timeout} s"
            LOGGER.warning(message)
            return VerificationResult(False, message)

    output = proc.stdout
    equal = output.startswith("Equal")
    if not equal:
        LOGGER.warning("Verification failed: %s", (output or proc.stderr).strip())
    return VerificationResult(equal, output)


def _postselected(circuit: Circuit, num_qubits: int, qubits: int) -> np.ndarray:
    data = Operator(circuit.to_qiskit(num_qubits)).data
    dim = 2**qubits
    return data[:dim, :dim]


def unitary_equivalent(
    a: Circuit,
    b: Circuit,
    qubits: int | None = None,
    *,
    atol: float = 1e-8,
) -> bool:
    """Return ``True`` if ``a`` and ``b`` agree up to a non-zero scalar.

    Qubits with index ``qubits`` or higher are ancillas prepared in and
    post-selected on ``|0>``.  Intended for small circuits only.
    """

    n = max(a.num_qubits, b.num_qubits, qubits or 0, 1)
    if qubits is None:
        qubits = n
    ua = _postselected(a, n, qubits)
    ub = _postselected(b, n, qubits)
    idx = np.unravel_index(np.argmax(np.abs(ua)), ua.shape)
    if abs(ua[idx]) < atol:
        return bool(np.allclose(ub, 0, atol=atol))
    scale = ub[idx] / ua[idx]
    if abs(scale) < atol:
        return False
    return bool(np.allclose(ub, scale * ua, atol=atol))


_CLIFFORD_PHASES = {2: "s", 4: "z", 6: "s_dag"}


def clifford_tableau(circuit: Circuit, num_qubits: int | None = None) -> stim.Tableau:
    """Return the stabilizer tableau of a Clifford-only circuit.

    Raises
    ------
    ValueError
        If the circuit contains a non-Clifford gate.
    """

    n = max(circuit.num_qubits, num_qubits or 0)
    sim = stim.TableauSimulator()
    sim.do_tableau(stim.Tableau(n), list(range(n)))
    for gate in circuit.gates:
        if not gate.is_clifford():
            raise ValueError(f"{gate!r} is not a Clifford gate")
        if isinstance(gate, H):
            sim.h(gate.qubit)
        elif isinstance(gate, X):
            sim.x(gate.qubit)
        elif isinstance(gate, PhaseGate):
            if gate.phase.value:
                getattr(sim, _CLIFFORD_PHASES[gate.phase.value])(gate.qubit)
        elif isinstance(gate, CNOT):
            sim.cnot(gate.control, gate.target)
        elif isinstance(gate, CZ):
            sim.cz(gate.a, gate.b)
        elif isinstance(gate, SWAP):
            sim.swap(gate.a, gate.b)
        else:  # pragma: no cover - closed vocabulary
            raise TypeError(f"Unsupported gate {gate!r}")
    return sim.current_inverse_tableau().inverse()


def cliffords_equal(a: Circuit, b: Circuit) -> bool:
    """Return ``True`` if two Clifford circuits agree up to global phase."""

    n = max(a.num_qubits, b.num_qubits)
    return clifford_tableau(a, n) == clifford_tableau(b, n)


__all__ = [
    "VerificationResult",
    "check_equivalence",
    "unitary_equivalent",
    "clifford_tableau",
    "cliffords_equal",
]
