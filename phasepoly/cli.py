"""Command line interface of phasepoly.

``phasepoly compile`` turns OpenQASM circuits into phase-polynomial blocks,
``phasepoly resynth`` synthesizes circuits from block matrices and
``phasepoly verify`` compares two OpenQASM circuits with ``feynver``.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence
import argparse
import logging

from . import config
from .artifacts import OutputType, parse_output_types
from .circuit import Circuit
from .compile import DEFAULT_EMIT, CompileOptions, compile_files
from .errors import PhasePolyError
from .resynth import resynthesize_files
from .verify import check_equivalence

LOGGER = logging.getLogger(__name__)


def _configure_logging(verbosity: int) -> None:
    """Initialise logging for CLI usage."""

    level = logging.WARNING
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _directory(value: str) -> Path:
    path = Path(value)
    if not path.is_dir():
        raise argparse.ArgumentTypeError("The output path must be a directory")
    return path


def _emit(value: str) -> List[OutputType]:
    try:
        return parse_output_types(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def _existing_files(paths: Sequence[str]) -> List[Path]:
    return [Path(p) for p in paths if Path(p).is_file()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="phasepoly",
        description="Compile Clifford+T circuits to phase polynomial blocks and back",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (use -vv for debug output).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    comp = sub.add_parser("compile", help="Compile .qasm files into phase polynomial blocks")
    comp.add_argument("-q", "--qubits", type=int, help="Limit the number of qubits in each block")
    comp.add_argument("-a", "--ancilla", type=int, help="Limit the number of ancilla in each block")
    comp.add_argument(
        "-e",
        "--emit",
        type=_emit,
        default=list(DEFAULT_EMIT),
        help="Comma-separated output types (default: circuit-qasm,matrix,tensor,verify).",
    )
    comp.add_argument("-z", "--zx-preopt", action="store_true", help="Pre-optimize the circuits with pyzx")
    comp.add_argument(
        "-s",
        "--split-iters",
        type=int,
        default=config.DEFAULT.split_iters,
        help="Number of iterations to find the best Hadamard gadgetization splits",
    )
    comp.add_argument("--verify", action="store_true", help="Verify intermediate circuits with feynver")
    comp.add_argument("--seed", type=int, default=config.DEFAULT.seed, help="Seed of the block merge search")
    comp.add_argument("--workers", type=int, default=config.DEFAULT.workers, help="Threads for the block merge search")
    comp.add_argument("output", type=_directory, help="Directory to place any output files")
    comp.add_argument("files", nargs="+", help="List of .qasm files to compile")

    res = sub.add_parser("resynth", help="Synthesize circuits from .npy block matrices")
    res.add_argument(
        "-e",
        "--emit",
        type=_emit,
        default=[OutputType.CIRCUIT_QASM],
        help="Comma-separated output types among circuit-qasm, circuit-qc and log.",
    )
    res.add_argument("-g", "--gadgets", action="store_true", default=config.DEFAULT.gadgets, help="Enable CCZ and CS gadget synthesis")
    res.add_argument("-O", "--original", action="append", default=[], help="Original decomposition matrix of each input")
    res.add_argument("-m", "--mapping", action="append", default=[], help="Qubit mapping file of each input")
    res.add_argument("output", type=_directory, help="Directory to place any output files")
    res.add_argument("files", nargs="+", help="List of .npy files containing decompositions to synthesize")

    ver = sub.add_parser("verify", help="Verify that two .qasm circuits are the same using feynver")
    ver.add_argument("-o", "--opaque", action="store_true", help="Accept ccz and cs without declarations")
    ver.add_argument("original", help="Original .qasm circuit file")
    ver.add_argument("new", help="New .qasm file to compare against")
    return parser


def _run_compile(parser: argparse.ArgumentParser, args: argparse.Namespace) -> int:
    files = _existing_files(args.files)
    if not files:
        parser.error("The specified input files do not exist or could not be accessed")
    options = CompileOptions.from_config(
        config.from_env(),
        qubit_budget=args.qubits,
        ancilla_budget=args.ancilla,
        split_iters=args.split_iters,
        zx_preopt=args.zx_preopt,
        verify=args.verify,
        seed=args.seed,
        workers=args.workers,
    )
    results = compile_files(files, args.output, options, args.emit)
    return 1 if any(stats.error for stats in results) else 0


def _run_resynth(parser: argparse.ArgumentParser, args: argparse.Namespace) -> int:
    files = _existing_files(args.files)
    if not files:
        parser.error("The specified input files do not exist or could not be accessed")
    try:
        results = resynthesize_files(
            files,
            args.output,
            originals=_existing_files(args.original),
            mappings=_existing_files(args.mapping),
            gadgets=args.gadgets,
            emit=args.emit,
        )
    except ValueError as exc:
        parser.error(str(exc))
    return 1 if any(stats.error for stats in results) else 0


def _run_verify(args: argparse.Namespace) -> int:
    try:
        original = Circuit.from_qasm(Path(args.original), opaque=args.opaque)
        new = Circuit.from_qasm(Path(args.new), opaque=args.opaque)
    except PhasePolyError as exc:
        LOGGER.error("%s", exc)
        return 2
    result = check_equivalence(original, new, original.num_qubits)
    print(result.output, end="" if result.output.endswith("\n") else "\n")
    return 0 if result.equal else 1


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    if args.command == "compile":
        return _run_compile(parser, args)
    if args.command == "resynth":
        return _run_resynth(parser, args)
    return _run_verify(args)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
