"""Python API for phasepoly."""

from .circuit import CCZ, CNOT, CS, CZ, H, SWAP, Circuit, Gate, Phase, PhaseGate, X
from .errors import (
    PhasePolyError,
    ParseError,
    ShapeError,
    SignatureMismatchError,
    ExternalToolError,
)
from .config import Config
from .partitioner import PartitionedCircuit, pull_gates, extract_cliffords, partition
from .hadamard import HadamardGadgets, decompose_hadamards, move_h_optimal
from .decompositions import to_cnot_phase
from .extract import GadgetExtraction, extract_gadgets
from .block_merge import BlockSpan, MergePlan, search_merges
from .polynomial import (
    find_signature_tensor,
    find_phase_polynomial,
    clifford_correction,
    has_zero_columns,
)
from .synthesis import SynthesisResult, synthesize
from .compile import CompileOptions, CompilationResult, compile_circuit, compile_files
from .resynth import resynthesize, resynthesize_files

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
    "PhasePolyError",
    "ParseError",
    "ShapeError",
    "SignatureMismatchError",
    "ExternalToolError",
    "Config",
    "PartitionedCircuit",
    "pull_gates",
    "extract_cliffords",
    "partition",
    "HadamardGadgets",
    "decompose_hadamards",
    "move_h_optimal",
    "to_cnot_phase",
    "GadgetExtraction",
    "extract_gadgets",
    "BlockSpan",
    "MergePlan",
    "search_merges",
    "find_signature_tensor",
    "find_phase_polynomial",
    "clifford_correction",
    "has_zero_columns",
    "SynthesisResult",
    "synthesize",
    "CompileOptions",
    "CompilationResult",
    "compile_circuit",
    "compile_files",
    "resynthesize",
    "resynthesize_files",
]
