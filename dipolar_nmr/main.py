"""
CLI entry point for the dipolar-nmr tool.

This module provides the main() function that serves as the command-line
interface to the coupling, pair and pairlist calculations.
"""

import sys
import logging
import argparse
from typing import Dict, List, Optional

from .commands import coupling, pair, pairlist
from .data import SUPPORTED_NUCLEI
from .exceptions import DipolarError
from .enumerator import DEFAULT_OUTPUT
from .trajectory import Trajectory

# Get a logger for this module
logger = logging.getLogger(__name__)

# Annotations holding integers; their values are parsed as numbers / ranges
_INTEGER_ANNOTATIONS = {"res_id", "resid"}


def parse_selection(text: str) -> Dict[str, list]:
    """
    Parse a command-line selection into annotation criteria.

    Format: whitespace-separated `key=value[,value...]` terms, combined by AND.
    Integer annotations (res_id) also accept `start-end` ranges.

    Example:
        "res_name=ALA,GLY atom_name=N res_id=1-10"
        -> {"res_name": ["ALA", "GLY"], "atom_name": ["N"], "res_id": [1, ..., 10]}
    """
    criteria: Dict[str, list] = {}
    for term in text.split():
        if "=" not in term:
            raise ValueError(f"Invalid selection term '{term}' (expected key=value)")
        key, _, raw = term.partition("=")
        if not key or not raw:
            raise ValueError(f"Invalid selection term '{term}' (expected key=value)")
        values: list = []
        for item in raw.split(","):
            if key in _INTEGER_ANNOTATIONS:
                if "-" in item[1:]:
                    # Allow a leading minus sign on the start
                    split_at = item.index("-", 1)
                    start, end = int(item[:split_at]), int(item[split_at + 1:])
                    values.extend(range(start, end + 1))
                else:
                    values.append(int(item))
            else:
                values.append(item)
        criteria.setdefault(key, []).extend(values)
    if not criteria:
        raise ValueError("Empty selection")
    return criteria


def _add_structure_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--structure",
        type=str,
        required=True,
        help="Structure file (PDB, PDBx/mmCIF, ...). Multi-model files are read as trajectories.",
    )
    parser.add_argument(
        "--trajectory",
        type=str,
        default=None,
        help="Optional: Trajectory file (XTC, DCD, TRR, ...) using --structure as topology.",
    )
    parser.add_argument(
        "--sel1",
        type=str,
        required=True,
        help="First selection, e.g. 'atom_name=H res_id=1-20'.",
    )
    parser.add_argument(
        "--nucleus1",
        type=str,
        required=True,
        choices=SUPPORTED_NUCLEI,
        help="Nucleus type of the first selection.",
    )
    parser.add_argument(
        "--sel2",
        type=str,
        required=True,
        help="Second selection, e.g. 'atom_name=N'.",
    )
    parser.add_argument(
        "--nucleus2",
        type=str,
        required=True,
        choices=SUPPORTED_NUCLEI,
        help="Nucleus type of the second selection.",
    )
    parser.add_argument(
        "--noangle",
        action="store_true",
        help="Ignore orientation (angle fixed at 0). Use for unoriented / MAS samples.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dipolar-nmr",
        description="Calculate NMR dipolar couplings from structures and trajectories.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_coupling = subparsers.add_parser(
        "coupling", help="Coupling for a given distance, angle and pair of nuclei."
    )
    p_coupling.add_argument("distance", type=float, help="Internuclear distance (Angstrom).")
    p_coupling.add_argument("angle", type=float, help="Angle to the magnetic field (degrees).")
    p_coupling.add_argument("nucleus1", type=str, choices=SUPPORTED_NUCLEI)
    p_coupling.add_argument("nucleus2", type=str, choices=SUPPORTED_NUCLEI)

    p_pair = subparsers.add_parser(
        "pair", help="Trajectory-averaged coupling between the centroids of two selections."
    )
    _add_structure_arguments(p_pair)

    p_pairlist = subparsers.add_parser(
        "pairlist", help="Couplings for every atom pair between two selections."
    )
    _add_structure_arguments(p_pairlist)
    p_pairlist.add_argument(
        "--filter",
        type=float,
        default=None,
        help="Only output pairs whose averaged coupling is at least this value (Hz).",
    )
    p_pairlist.add_argument(
        "--output",
        type=str,
        default=DEFAULT_OUTPUT,
        help=f"Output table (default: {DEFAULT_OUTPUT}).",
    )
    return parser


def _run(args: argparse.Namespace) -> None:
    if args.command == "coupling":
        value = coupling(args.distance, args.angle, args.nucleus1, args.nucleus2)
        print(f"{value:.3f}")
        return

    trajectory = Trajectory.from_file(args.structure, args.trajectory)
    selection1 = trajectory.select(**parse_selection(args.sel1))
    selection2 = trajectory.select(**parse_selection(args.sel2))

    if args.command == "pair":
        result = pair(selection1, args.nucleus1, selection2, args.nucleus2, noangle=args.noangle)
        print(f"Distance:  {result.distance_mean:.2f} +/- {result.distance_std:.2f} A")
        print(f"Angle:     {result.angle_mean:.1f} +/- {result.angle_std:.1f} deg")
        print(f"Coupling:  {result.coupling_mean:.1f} +/- {result.coupling_std:.1f} Hz")
        print(f"CouplingF: {result.coupling_from_means:.1f} Hz")
    else:
        pairlist(
            selection1,
            args.nucleus1,
            selection2,
            args.nucleus2,
            noangle=args.noangle,
            filter=args.filter,
            out=args.output,
        )


def main(argv: Optional[List[str]] = None) -> None:
    """
    Main function to parse arguments and run the requested calculation.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # Set the logging level based on user input
    log_level = getattr(logging, args.log_level.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Invalid log level: {args.log_level}")
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")
    logging.getLogger().setLevel(log_level)
    logger.debug("Logging level set to %s.", args.log_level.upper())

    try:
        _run(args)
    except (DipolarError, ValueError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
