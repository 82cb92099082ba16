from __future__ import annotations

import json

import numpy as np
import pytest

from phasepoly import zx
from phasepoly.artifacts import OutputType, load_mapping, load_matrix
from phasepoly.circuit import CCZ, CS, H, X, Circuit, Phase, PhaseGate
from phasepoly.compile import CompileOptions, compile_circuit, compile_files, initial_tcount
from phasepoly.config import Config
from phasepoly.errors import ShapeError
from phasepoly.polynomial import find_signature_tensor
from phasepoly.verify import VerificationResult, unitary_equivalent

PROGRAM = """OPENQASM 2.0;
include "qelib1.inc";
qreg q[1];
t q[0];
h q[0];
t q[0];
h q[0];
t q[0];
"""


def T(q: int) -> PhaseGate:
    return PhaseGate(Phase.T, q)


def unitary_checker(original: Circuit, new: Circuit, qubits: int) -> VerificationResult:
    equal = unitary_equivalent(original, new, qubits)
    return VerificationResult(equal, "Equal\n" if equal else "Not equal\n")


def test_options_from_config() -> None:
    config = Config(split_iters=7, ancilla_budget=2, qubit_budget=None, seed=3, workers=2)
    options = CompileOptions.from_config(config, ancilla_budget=None, verify=True, qubit_budget=9)

    assert options.split_iters == 7
    assert options.ancilla_budget == 2
    assert options.qubit_budget == 9
    assert options.seed == 3
    assert options.verify is True
    assert options.to_dict()["workers"] == 2


def test_ancillas_per_block() -> None:
    assert CompileOptions(ancilla_budget=None, qubit_budget=None).ancillas_per_block(3) is None
    assert CompileOptions(ancilla_budget=3, qubit_budget=None).ancillas_per_block(3) == 3
    assert CompileOptions(ancilla_budget=3, qubit_budget=5).ancillas_per_block(3) == 2
    assert CompileOptions(ancilla_budget=None, qubit_budget=4).ancillas_per_block(3) == 1


def test_initial_tcount_expands_controlled_gates() -> None:
    circuit = Circuit([CCZ(0, 1, 2), CS(0, 1), T(2), PhaseGate(Phase.S, 0)])
    assert initial_tcount(circuit) == 7 + 3 + 1


def test_compile_circuit_verifies_every_stage() -> None:
    circuit = Circuit([T(0), H(0), T(0), H(0), T(0)])
    options = CompileOptions(
        split_iters=10, seed=0, verify=True, ancilla_budget=None, qubit_budget=None
    )
    result = compile_circuit(circuit, options, checker=unitary_checker)

    assert circuit.gates == [T(0), H(0), T(0), H(0), T(0)]
    assert set(result.verifications) == {"hopt", "partition", "resynth"}
    assert all(v.equal for v in result.verifications.values())

    [(qubits, matrix)] = result.matrices
    assert qubits == sorted(qubits)
    assert result.stats.qubits == 1
    assert result.stats.tcount.initial == 3
    assert result.stats.tcount.zx_preopt is None
    assert result.stats.tcount.basic_opt == matrix.shape[1]
    assert result.stats.hcount.initial == 2
    assert [b.to_dict() for b in result.stats.blocks] == [
        {"qubits": matrix.shape[0], "initial": matrix.shape[1]}
    ]


def test_compile_circuit_with_an_ancilla_budget(random_circuit) -> None:
    options = CompileOptions(
        split_iters=20, seed=1, verify=True, ancilla_budget=1, qubit_budget=None
    )
    for seed in range(3):
        circuit = random_circuit(3, 20, seed, max_hadamards=3)
        result = compile_circuit(circuit, options, checker=unitary_checker)
        assert all(v.equal for v in result.verifications.values())
        assert result.partitioned.num_qubits <= circuit.num_qubits + 3
        assert len(result.matrices) == len(result.partitioned.functional_blocks)


def test_compile_circuit_uses_the_minimizer_and_zx(monkeypatch) -> None:
    calls = []

    def minimizer(num_qubits, gates):
        calls.append(num_qubits)
        return gates

    def fake_preoptimize(circuit):
        return circuit.copy()

    monkeypatch.setattr(zx, "preoptimize", fake_preoptimize)
    options = CompileOptions(split_iters=5, seed=0, verify=True, zx_preopt=True)
    circuit = Circuit([H(0), CCZ(0, 1, 2), H(0)])
    result = compile_circuit(circuit, options, minimizer=minimizer, checker=unitary_checker)

    assert calls == [3]
    assert set(result.verifications) == {"zx", "hopt", "partition", "resynth"}
    assert all(v.equal for v in result.verifications.values())
    assert result.stats.tcount.zx_preopt == 0


def test_ancillas_never_reuse_idle_data_qubits() -> None:
    def drop_x(num_qubits, gates):
        return [gate for gate in gates if gate[0] != "x"]

    circuit = Circuit([H(0), T(0), H(0), T(0), H(0), T(0), H(0), X(2), X(2)])
    options = CompileOptions(
        split_iters=5, seed=0, verify=True, ancilla_budget=None, qubit_budget=None
    )
    result = compile_circuit(circuit, options, minimizer=drop_x, checker=unitary_checker)

    assert result.optimized.num_qubits == 1
    ancillas = {g.qubit for g in result.partitioned.front.gates if isinstance(g, H)} - {0}
    assert ancillas and min(ancillas) >= 3
    assert all(v.equal for v in result.verifications.values())
    assert unitary_equivalent(circuit, result.partitioned.merge(), 3)


def test_compile_circuit_enforces_the_qubit_budget() -> None:
    with pytest.raises(ShapeError):
        compile_circuit(Circuit([CCZ(0, 1, 2)]), CompileOptions(qubit_budget=2))


def test_compile_files_writes_artifacts(tmp_path) -> None:
    source = tmp_path / "t3.qasm"
    source.write_text(PROGRAM)
    broken = tmp_path / "broken.qasm"
    broken.write_text(PROGRAM.replace("t q[0];", "rz(0.1) q[0];", 1))
    out = tmp_path / "out"
    out.mkdir()

    options = CompileOptions(split_iters=10, seed=0, ancilla_budget=None, qubit_budget=None)
    stats = compile_files([broken, source], out, options, list(OutputType), show_progress=False)

    assert stats[0].error is not None
    assert stats[1].error is None
    assert stats[1].path == str(source.resolve())

    assert Circuit.from_qasm(out / "t3.hopt.qasm").gates == Circuit.from_qasm(PROGRAM).gates
    assert (out / "t3.hopt.qc").exists()
    assert (out / "t3.block0.cliffords.qasm").exists()
    assert (out / "t3.block1.cnotphase.qc").exists()
    assert (out / "t3.block2.cliffords.qasm").exists()
    assert not list(out.glob("*.verify.txt"))

    matrix = load_matrix(out / "t3.block1.matrix.npy")
    mapping = load_mapping(out / "t3.block1.mapping.txt")
    assert matrix.shape == (len(mapping), stats[1].tcount.basic_opt)
    tensor = np.load(out / "t3.block1.tensor.npy")
    assert np.array_equal(tensor, find_signature_tensor(matrix))

    [log] = list(out.glob("run_*.log"))
    payload = json.loads(log.read_text())
    assert payload["invocation"]["split_iters"] == 10
    assert [entry["error"] is None for entry in payload["files"]] == [False, True]
    assert payload["files"][1]["tcount"]["initial"] == 3
