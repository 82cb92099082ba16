"""Re-synthesis of circuits from gate-synthesis matrices.

Matrices are typically produced by ``phasepoly compile`` and then reduced by
an external tensor-decomposition tool.  When the original matrix is available
the Clifford factor separating the two decompositions is restored.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence
import logging
import os

import numpy as np

from .artifacts import OutputType, load_mapping, load_matrix, validate_mapping, write_run_log, write_text
from .errors import PhasePolyError, ShapeError, SignatureMismatchError
from .polynomial import clifford_correction, find_signature_tensor, has_zero_columns
from .progress import ProgressReporter
from .synthesis import SynthesisResult, synthesize

LOGGER = logging.getLogger(__name__)


@dataclass
class ResynthStats:
    path: str = ""
    mapping: List[int] = field(default_factory=list)
    nccz: int = 0
    ncs: int = 0
    nt: int = 0
    error: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def resynthesize(
    matrix: np.ndarray,
    mapping: Sequence[int] | None = None,
    original: np.ndarray | None = None,
    gadgets: bool = False,
) -> SynthesisResult:
    """Synthesize ``matrix`` and correct it towards ``original``.

    Parameters
    ----------
    matrix:
        Boolean gate-synthesis matrix to synthesize.
    mapping:
        Qubit of each matrix row; defaults to the row index.
    original:
        Matrix the decomposition was derived from.  When given, the
        signature tensors must agree and a Clifford correction is appended
        so that the result implements the original diagonal exactly.
    gadgets:
        Recognise CCZ and CS gadgets.

    Raises
    ------
    ShapeError
        For all-zero columns, a mapping of the wrong size or with repeated
        qubits, or an original with a different number of rows.
    SignatureMismatchError
        If the signature tensors of ``matrix`` and ``original`` differ.
    """

    matrix = np.asarray(matrix, dtype=bool)
    if matrix.ndim != 2:
        raise ShapeError(f"expected a 2-D matrix, got shape {matrix.shape}")
    rows = matrix.shape[0]
    if has_zero_columns(matrix):
        raise ShapeError("decomposition matrix has all-zero columns")
    if mapping is None:
        mapping = list(range(rows))
    else:
        mapping = validate_mapping(mapping, rows)

    if original is not None:
        original = np.asarray(original, dtype=bool)
        if original.ndim != 2 or original.shape[0] != rows:
            raise ShapeError(
                f"original decomposition has shape {original.shape}, expected {rows} rows"
            )
        if not np.array_equal(find_signature_tensor(matrix), find_signature_tensor(original)):
            raise SignatureMismatchError(
                "signature tensors of decomposition and original don't match"
            )

    result = synthesize(matrix, mapping, gadgets)
    if original is not None:
        correction = clifford_correction(matrix, original, mapping)
        LOGGER.debug("Clifford correction factor: %d gates", len(correction))
        result.circuit.merge(correction)
    return result


def _pair(
    files: Sequence[str | os.PathLike[str]],
    extra: Sequence[str | os.PathLike[str]] | None,
    what: str,
) -> List[str | os.PathLike[str] | None]:
    if not extra:
        LOGGER.warning("no %s files were provided", what)
        return [None] * len(files)
    if len(extra) != len(files):
        raise ValueError(f"A {what} file must be provided for each input file")
    return list(extra)


def resynthesize_files(
    paths: Sequence[str | os.PathLike[str]],
    output_dir: str | os.PathLike[str],
    *,
    originals: Sequence[str | os.PathLike[str]] | None = None,
    mappings: Sequence[str | os.PathLike[str]] | None = None,
    gadgets: bool = False,
    emit: Iterable[OutputType] = (OutputType.CIRCUIT_QASM,),
    show_progress: bool = True,
) -> List[ResynthStats]:
    """Re-synthesize ``.npy`` matrices and write the circuits to ``output_dir``.

    ``originals`` and ``mappings`` are either empty or give one file per
    input.  Without mappings qubits are numbered by row, without originals
    the output may differ by a Clifford factor; both cases are logged.

    Raises
    ------
    ValueError
        If ``originals`` or ``mappings`` do not pair up with ``paths``.
    """

    emit = list(emit)
    original_files = _pair(paths, originals, "original decomposition")
    mapping_files = _pair(paths, mappings, "qubit mapping")
    reporter = ProgressReporter(len(paths), enabled=show_progress)
    results: List[ResynthStats] = []
    for path, original_file, mapping_file in zip(paths, original_files, mapping_files):
        stats = ResynthStats(path=str(Path(path).resolve()))
        reporter.announce("  Synthesizing circuit...")
        try:
            matrix = load_matrix(path)
            original = load_matrix(original_file) if original_file is not None else None
            mapping = load_mapping(mapping_file) if mapping_file is not None else None
            result = resynthesize(matrix, mapping, original, gadgets)
        except (PhasePolyError, OSError, ValueError) as exc:
            LOGGER.error("%s: %s", path, exc)
            reporter.report(f"  Error - {exc}, skipping")
            stats.error = str(exc)
            results.append(stats)
            reporter.advance()
            continue

        stats.mapping = list(mapping) if mapping is not None else list(range(matrix.shape[0]))
        stats.nccz, stats.ncs, stats.nt = result.nccz, result.ncs, result.nt
        reporter.report(
            f"  Circuit synthesis complete - CCZ = {result.nccz}, CS = {result.ncs}, T = {result.nt}"
        )
        circuit = result.circuit
        if OutputType.CIRCUIT_QASM in emit:
            written = write_text(output_dir, path, ".qasm", circuit.to_qasm())
            reporter.report(f"    Wrote synthesized circuit to: {written}")
        if OutputType.CIRCUIT_QC in emit:
            written = write_text(output_dir, path, ".qc", circuit.to_qc())
            reporter.report(f"    Wrote synthesized circuit to: {written}")
        results.append(stats)
        reporter.advance()
    reporter.close()

    if OutputType.LOG in emit:
        invocation = {
            "gadgets": gadgets,
            "emit": [t.value for t in emit],
            "files": [str(p) for p in paths],
            "original": [str(p) for p in originals or []],
            "mapping": [str(p) for p in mappings or []],
        }
        log = write_run_log(output_dir, invocation, [stats.to_dict() for stats in results])
        LOGGER.info("Wrote log file to: %s", log)
    return results


__all__ = ["ResynthStats", "resynthesize", "resynthesize_files"]
