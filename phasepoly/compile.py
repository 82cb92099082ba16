"""Compilation of Clifford+T circuits into phase-polynomial blocks.

The pipeline optionally pre-optimizes a circuit with ZX-calculus, minimizes
its internal Hadamards, partitions it into alternating functional and
Clifford blocks, gadgetizes the remaining Hadamards under an ancilla budget
and finally extracts one gate-synthesis matrix per functional block.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Sequence, Tuple
import logging
import os

import numpy as np

from .artifacts import OutputType, save_mapping, save_matrix, output_path, write_run_log, write_text
from .circuit import CCZ, CS, Circuit
from .config import Config, DEFAULT
from .errors import PhasePolyError, ShapeError
from .hadamard import Minimizer, move_h_optimal
from .partitioner import PartitionedCircuit, partition
from .polynomial import find_signature_tensor
from .progress import ProgressReporter
from .verify import VerificationResult, check_equivalence

LOGGER = logging.getLogger(__name__)

#: Callable comparing ``original`` and ``new`` on the first ``qubits`` qubits.
Checker = Callable[[Circuit, Circuit, int], VerificationResult]

DEFAULT_EMIT: Tuple[OutputType, ...] = (
    OutputType.CIRCUIT_QASM,
    OutputType.MATRIX,
    OutputType.TENSOR,
    OutputType.VERIFY,
)


@dataclass
class CompileOptions:
    """Options of a compilation run.

    ``qubit_budget`` limits the total number of qubits including ancillas and
    ``ancilla_budget`` the ancillas per block; ``None`` means unbounded.
    """

    qubit_budget: int | None = DEFAULT.qubit_budget
    ancilla_budget: int | None = DEFAULT.ancilla_budget
    split_iters: int = DEFAULT.split_iters
    zx_preopt: bool = False
    verify: bool = False
    seed: int | None = DEFAULT.seed
    workers: int = DEFAULT.workers
    feynver: str = DEFAULT.feynver
    verify_timeout: float | None = DEFAULT.verify_timeout

    @classmethod
    def from_config(cls, config: Config | None = None, **overrides: Any) -> "CompileOptions":
        """Build options from ``config`` with explicit ``overrides`` applied."""

        config = config or DEFAULT
        values: Dict[str, Any] = {
            "qubit_budget": config.qubit_budget,
            "ancilla_budget": config.ancilla_budget,
            "split_iters": config.split_iters,
            "seed": config.seed,
            "workers": config.workers,
            "feynver": config.feynver,
            "verify_timeout": config.verify_timeout,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def ancillas_per_block(self, qubits: int) -> int | None:
        """Return the Hadamard budget of a merged block for a circuit width."""

        limits = []
        if self.ancilla_budget is not None:
            limits.append(self.ancilla_budget)
        if self.qubit_budget is not None:
            limits.append(self.qubit_budget - qubits)
        return min(limits) if limits else None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TCountStats:
    initial: int = 0
    zx_preopt: int | None = None
    basic_opt: int | None = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class HCountStats:
    initial: int = 0
    optimized: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BlockStats:
    """Rows (``qubits``) and columns (``initial``) of a block matrix."""

    qubits: int = 0
    initial: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FileStats:
    """Statistics recorded for one compiled circuit."""

    path: str = ""
    qubits: int = 0
    tcount: TCountStats = field(default_factory=TCountStats)
    hcount: HCountStats = field(default_factory=HCountStats)
    blocks: List[BlockStats] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "qubits": self.qubits,
            "tcount": self.tcount.to_dict(),
            "hcount": self.hcount.to_dict(),
            "blocks": [block.to_dict() for block in self.blocks],
            "error": self.error,
        }


@dataclass
class CompilationResult:
    """Output of :func:`compile_circuit`.

    Attributes
    ----------
    optimized:
        Circuit after pre-optimization and Hadamard minimization.
    partitioned:
        Final blocks; functional blocks hold only the T diagonal.
    matrices:
        ``(qubits, matrix)`` for every functional block.
    stats:
        Gate counts collected along the way.
    verifications:
        Verification outcome per stage (``zx``, ``hopt``, ``partition``,
        ``resynth``) when verification was requested.
    """

    optimized: Circuit
    partitioned: PartitionedCircuit
    matrices: List[Tuple[List[int], np.ndarray]]
    stats: FileStats
    verifications: Dict[str, VerificationResult] = field(default_factory=dict)


def initial_tcount(circuit: Circuit) -> int:
    """Return the T count with ``CCZ`` counted as 7 and ``CS`` as 3."""

    nccz = sum(1 for g in circuit.gates if isinstance(g, CCZ))
    ncs = sum(1 for g in circuit.gates if isinstance(g, CS))
    return circuit.tcount() + 7 * nccz + 3 * ncs


def _default_checker(options: CompileOptions) -> Checker:
    def checker(original: Circuit, new: Circuit, qubits: int) -> VerificationResult:
        return check_equivalence(
            original, new, qubits, binary=options.feynver, timeout=options.verify_timeout
        )

    return checker


def compile_circuit(
    circuit: Circuit,
    options: CompileOptions | None = None,
    *,
    minimizer: Minimizer | None = None,
    checker: Checker | None = None,
    progress: ProgressReporter | None = None,
) -> CompilationResult:
    """Compile ``circuit`` into blocks and gate-synthesis matrices.

    The input circuit is left untouched.

    Raises
    ------
    ShapeError
        If the circuit is wider than ``options.qubit_budget``.
    """

    options = options or CompileOptions()
    qubits = circuit.num_qubits
    if options.qubit_budget is not None and options.qubit_budget < qubits:
        raise ShapeError(
            f"Too many qubits ({qubits} but budget is {options.qubit_budget})"
        )
    if checker is None and options.verify:
        checker = _default_checker(options)

    def announce(message: str) -> None:
        LOGGER.info(message)
        if progress is not None:
            progress.announce(message)

    stats = FileStats(qubits=qubits)
    stats.tcount.initial = initial_tcount(circuit)
    stats.hcount.initial = circuit.hcount_accurate()
    verifications: Dict[str, VerificationResult] = {}
    original = circuit
    current = circuit.copy()

    def verify(stage: str, new: Circuit) -> None:
        if not options.verify or checker is None:
            return
        announce(f"  Verifying {stage}...")
        verifications[stage] = checker(original, new, qubits)

    if options.zx_preopt:
        from .zx import preoptimize

        announce("  Pre-optimizing with ZX...")
        current = preoptimize(current)
        stats.tcount.zx_preopt = current.tcount()
        verify("zx", current)

    start = current.hcount_accurate()
    move_h_optimal(current, minimizer)
    stats.hcount.optimized = current.hcount_accurate()
    announce(
        f"  Hadamard optimization done: initial hcount = {start}, "
        f"final hcount = {stats.hcount.optimized}"
    )
    verify("hopt", current)

    partitioned = partition(current.copy())
    before = (len(partitioned.blocks) + 1) // 2
    partitioned.pick_gadgets(
        options.ancillas_per_block(qubits),
        options.split_iters,
        seed=options.seed,
        workers=options.workers,
    )
    partitioned.to_cnot_phase(max(qubits, partitioned.num_qubits))
    after = (len(partitioned.blocks) + 1) // 2
    announce(f"  Gadgetizing done: {before} blocks => {after} blocks")
    verify("partition", partitioned.merge())

    matrices = partitioned.extract_gadgets()
    verify("resynth", partitioned.merge())

    stats.blocks = [BlockStats(matrix.shape[0], matrix.shape[1]) for _, matrix in matrices]
    stats.tcount.basic_opt = sum(block.initial for block in stats.blocks)
    return CompilationResult(current, partitioned, matrices, stats, verifications)


def write_outputs(
    source: str | os.PathLike[str],
    result: CompilationResult,
    output_dir: str | os.PathLike[str],
    emit: Iterable[OutputType],
) -> List[Path]:
    """Write the artifacts selected by ``emit`` for one compiled file."""

    emit = set(emit)
    qubits = result.stats.qubits
    written: List[Path] = []

    def text(suffix: str, value: str) -> None:
        written.append(write_text(output_dir, source, suffix, value))

    if OutputType.CIRCUIT_QASM in emit:
        text(".hopt.qasm", result.optimized.to_qasm())
    if OutputType.CIRCUIT_QC in emit:
        text(".hopt.qc", result.optimized.to_qc(qubits))
    if OutputType.VERIFY in emit:
        for stage, verification in result.verifications.items():
            text(f".{stage}.verify.txt", verification.output)

    partitioned = result.partitioned
    blocks: List[Tuple[str, Circuit]] = [(".block0.cliffords", partitioned.front)]
    for j, block in enumerate(partitioned.blocks):
        kind = "cnotphase" if j % 2 == 0 else "cliffords"
        blocks.append((f".block{j + 1}.{kind}", block))
    blocks.append((f".block{len(partitioned.blocks) + 1}.cliffords", partitioned.back))
    for suffix, block in blocks:
        if OutputType.BLOCK_QASM in emit:
            text(f"{suffix}.qasm", block.to_qasm())
        if OutputType.BLOCK_QC in emit:
            text(f"{suffix}.qc", block.to_qc(qubits))

    for j, (mapping, matrix) in enumerate(result.matrices):
        index = 2 * j + 1
        if OutputType.MATRIX in emit:
            written.append(save_mapping(output_path(output_dir, source, f".block{index}.mapping.txt"), mapping))
            written.append(save_matrix(output_path(output_dir, source, f".block{index}.matrix.npy"), matrix))
        if OutputType.TENSOR in emit:
            written.append(
                save_matrix(
                    output_path(output_dir, source, f".block{index}.tensor.npy"),
                    find_signature_tensor(matrix),
                )
            )
    return written


def compile_files(
    paths: Sequence[str | os.PathLike[str]],
    output_dir: str | os.PathLike[str],
    options: CompileOptions | None = None,
    emit: Iterable[OutputType] = DEFAULT_EMIT,
    *,
    minimizer: Minimizer | None = None,
    checker: Checker | None = None,
    show_progress: bool = True,
) -> List[FileStats]:
    """Compile OpenQASM files and write their artifacts to ``output_dir``.

    A file that cannot be parsed or compiled is logged and recorded with its
    ``error`` set; the remaining files are still processed.
    """

    options = options or CompileOptions()
    emit = list(emit)
    reporter = ProgressReporter(len(paths), enabled=show_progress)
    results: List[FileStats] = []
    for path in paths:
        reporter.report(f"Processing: {path}")
        try:
            circuit = Circuit.from_qasm(Path(path), opaque=True)
            result = compile_circuit(
                circuit, options, minimizer=minimizer, checker=checker, progress=reporter
            )
        except (PhasePolyError, OSError) as exc:
            LOGGER.error("%s: %s", path, exc)
            reporter.report(f"  Error - {exc}, skipping")
            results.append(FileStats(path=str(Path(path).resolve()), error=str(exc)))
            reporter.advance()
            continue
        result.stats.path = str(Path(path).resolve())
        for written in write_outputs(path, result, output_dir, emit):
            LOGGER.debug("Wrote %s", written)
        for stage, verification in result.verifications.items():
            status = "done" if verification.equal else "failed"
            reporter.report(f"  Verifying {stage} {status}")
        results.append(result.stats)
        reporter.advance()
    reporter.close()

    if OutputType.LOG in emit:
        invocation = options.to_dict()
        invocation["emit"] = [t.value for t in emit]
        invocation["files"] = [str(p) for p in paths]
        log = write_run_log(output_dir, invocation, [stats.to_dict() for stats in results])
        LOGGER.info("Wrote log file to: %s", log)
    return results


__all__ = [
    "DEFAULT_EMIT",
    "CompileOptions",
    "TCountStats",
    "HCountStats",
    "BlockStats",
    "FileStats",
    "CompilationResult",
    "initial_tcount",
    "compile_circuit",
    "write_outputs",
    "compile_files",
]
