"""Persistence helpers for synthesis matrices, tensors and qubit mappings."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Sequence
import json
import os
import time

import numpy as np

from .errors import ParseError, ShapeError


def save_matrix(path: str | os.PathLike[str], matrix: np.ndarray) -> Path:
    """Write a boolean matrix or tensor in ``.npy`` format."""

    path = Path(path)
    np.save(path, np.asarray(matrix, dtype=bool), allow_pickle=False)
    return path


def load_matrix(path: str | os.PathLike[str]) -> np.ndarray:
    """Load a two-dimensional boolean matrix from a ``.npy`` file.

    Raises
    ------
    ShapeError
        If the stored array is not two-dimensional.
    """

    array = np.load(Path(path), allow_pickle=False)
    if array.ndim != 2:
        raise ShapeError(f"{path}: expected a 2-D matrix, got shape {array.shape}")
    return array.astype(bool)


def save_mapping(path: str | os.PathLike[str], mapping: Sequence[int]) -> Path:
    """Write a qubit mapping as a JSON list of integers."""

    path = Path(path)
    path.write_text(json.dumps([int(q) for q in mapping]), encoding="utf8")
    return path


def load_mapping(path: str | os.PathLike[str]) -> List[int]:
    """Read a qubit mapping written by :func:`save_mapping`."""

    text = Path(path).read_text(encoding="utf8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"{path}: {exc.msg}", line=exc.lineno) from exc
    if not isinstance(data, list) or not all(
        isinstance(q, int) and not isinstance(q, bool) and q >= 0 for q in data
    ):
        raise ParseError(f"{path}: expected a list of non-negative integers")
    return data


def validate_mapping(mapping: Sequence[int], rows: int) -> List[int]:
    """Return ``mapping`` as a list after checking it against ``rows``.

    Raises
    ------
    ShapeError
        If the mapping has the wrong size or repeats a qubit.
    """

    mapping = [int(q) for q in mapping]
    if len(mapping) != rows:
        raise ShapeError(
            f"qubit mapping has {len(mapping)} entries but the matrix has {rows} rows"
        )
    if len(set(mapping)) != len(mapping):
        raise ShapeError("qubit mapping is not unique")
    return mapping


class OutputType(str, Enum):
    """Kinds of files a batch command can emit."""

    CIRCUIT_QASM = "circuit-qasm"
    CIRCUIT_QC = "circuit-qc"
    TENSOR = "tensor"
    MATRIX = "matrix"
    BLOCK_QASM = "block-qasm"
    BLOCK_QC = "block-qc"
    VERIFY = "verify"
    LOG = "log"


def parse_output_types(text: str) -> List[OutputType]:
    """Parse a comma-separated list such as ``"circuit-qasm,matrix"``."""

    items = [item.strip() for item in text.split(",") if item.strip()]
    try:
        return [OutputType(item) for item in items]
    except ValueError as exc:
        choices = ", ".join(t.value for t in OutputType)
        raise ValueError(f"{exc}; expected one of: {choices}") from None


def output_path(output_dir: str | os.PathLike[str], source: str | os.PathLike[str], suffix: str) -> Path:
    """Return ``output_dir / (stem of source + suffix)``."""

    return Path(output_dir) / f"{Path(source).stem}{suffix}"


def write_text(output_dir: str | os.PathLike[str], source: str | os.PathLike[str], suffix: str, text: str) -> Path:
    path = output_path(output_dir, source, suffix)
    path.write_text(text, encoding="utf8")
    return path


def write_run_log(output_dir: str | os.PathLike[str], invocation: Dict[str, Any], files: Sequence[Dict[str, Any]]) -> Path:
    """Write a JSON run log named ``run_<milliseconds>.log`` and return its path."""

    path = Path(output_dir) / f"run_{time.time_ns() // 1_000_000}.log"
    with open(path, "w", encoding="utf8") as fh:
        json.dump({"invocation": invocation, "files": list(files)}, fh, indent=2, default=str)
    return path


__all__ = [
    "OutputType",
    "parse_output_types",
    "output_path",
    "write_text",
    "write_run_log",
    "save_matrix",
    "load_matrix",
    "save_mapping",
    "load_mapping",
    "validate_mapping",
]
