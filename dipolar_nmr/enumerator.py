"""
Pairwise dipolar coupling tables.

Enumerates every atom pair between two selections, samples each pair over the
trajectory, filters by coupling strength and writes a tab-separated table.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from .data import get_gyromagnetic_ratio
from .exceptions import OutputWriteError
from .sampler import PairResult, sample_pair

logger = logging.getLogger(__name__)

OUTPUT_HEADER = "# Atom1\tAtom2\t\tDistance\tAngle\t\tCoupling\tCouplingF"

DEFAULT_OUTPUT = "dipolar.dat"


@dataclass(frozen=True)
class EnumerationConfig:
    """
    Options of one pairlist run.

    Attributes:
        noangle: Ignore orientation (angle fixed at 0, e.g. for MAS samples).
        filter: Minimum averaged coupling (Hz) for a pair to be written.
            None writes every pair.
        output_path: Destination of the table.
    """
    noangle: bool = False
    filter: Optional[float] = None
    output_path: str = DEFAULT_OUTPUT

    def __post_init__(self):
        if self.filter is not None:
            if not math.isfinite(self.filter) or self.filter < 0:
                raise ValueError(f"Coupling filter must be a non-negative number of Hz, got {self.filter}")
        if not self.output_path:
            raise ValueError("An output path is required.")


@dataclass(frozen=True)
class EnumerationSummary:
    recorded: int
    ignored: int
    total: int
    output_path: str
    cancelled: bool = False


class ProgressObserver(ABC):
    """Receives (done, total) pair counts at roughly 10% checkpoints."""

    @abstractmethod
    def update(self, done: int, total: int) -> None:
        """Called after `done` of `total` pairs have been processed."""


class LoggingProgress(ProgressObserver):
    """Default observer: logs the completed percentage."""

    def update(self, done: int, total: int) -> None:
        logger.info(f"{round(100.0 * done / total)}% of pairs processed")


class CancellationToken:
    """Cooperative cancellation flag, checked between pairs."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


def count_pairs(indices1: Sequence[int], indices2: Sequence[int]) -> int:
    """Number of (i, j) pairs with i != j."""
    return sum(1 for i in indices1 for j in indices2 if i != j)


def format_atom_label(res_name, res_id, atom_name) -> str:
    return f"{res_name}-{res_id}-{atom_name}"


def format_record(label1: str, label2: str, result: PairResult) -> str:
    """One output row: labels, distance, angle, coupling (mean±std) and from-means coupling."""
    return (
        f"{label1}\t{label2}\t"
        f"{result.distance_mean:.2f}±{result.distance_std:.2f}\t"
        f"{result.angle_mean:.1f}±{result.angle_std:.1f}\t"
        f"{result.coupling_mean:.1f}±{result.coupling_std:.1f}\t"
        f"{result.coupling_from_means:.1f}"
    )


def _label(trajectory, atom_id: int) -> str:
    return format_atom_label(
        trajectory.attribute(atom_id, "resname"),
        trajectory.attribute(atom_id, "resid"),
        trajectory.attribute(atom_id, "name"),
    )


def enumerate_pairs(
    trajectory,
    indices1: Sequence[int],
    nucleus1: str,
    indices2: Sequence[int],
    nucleus2: str,
    config: EnumerationConfig,
    progress: Optional[ProgressObserver] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> EnumerationSummary:
    """
    Compute and write dipolar couplings for all atom pairs of two selections.

    Pairs run with indices1 as the outer loop and indices2 as the inner one.
    An atom is never paired with itself, even when it appears in both lists.

    Args:
        trajectory: Structure provider (see trajectory.Trajectory): needs
            frame_count(), single_atom(atom_id) and attribute(atom_id, name).
        indices1, indices2: Atom ids of the two selections.
        nucleus1, nucleus2: Isotope symbols assigned to each selection.
        config: Run options.
        progress: Observer for checkpoints (default: LoggingProgress).
        cancel_token: Optional token; a cancelled run stops before the next pair.

    Returns:
        EnumerationSummary with recorded / ignored / total pair counts.

    Raises:
        UnknownNucleusError: Before any work, for an unsupported nucleus.
        OutputWriteError: Before any work, if the output cannot be opened.
    """
    get_gyromagnetic_ratio(nucleus1)
    get_gyromagnetic_ratio(nucleus2)

    if progress is None:
        progress = LoggingProgress()

    indices1 = list(indices1)
    indices2 = list(indices2)
    total = count_pairs(indices1, indices2)
    n_frames = trajectory.frame_count()
    # No checkpoints below 10 pairs
    checkpoint = total // 10

    logger.info(f"{len(indices1)} atoms in selection 1 assigned type {nucleus1}")
    logger.info(f"{len(indices2)} atoms in selection 2 assigned type {nucleus2}")
    logger.info(f"Computing dipolar couplings for {total} internuclear pairs over {n_frames} frames")

    recorded = 0
    ignored = 0
    done = 0
    cancelled = False

    try:
        outf = open(config.output_path, "w", encoding="utf-8")
    except OSError as e:
        raise OutputWriteError(f"Cannot open output file {config.output_path}: {e}") from e
    with outf:
        outf.write(OUTPUT_HEADER + "\n")

        for i in indices1:
            for j in indices2:
                if i == j:
                    continue
                if cancel_token is not None and cancel_token.cancelled:
                    cancelled = True
                    break

                result = sample_pair(
                    trajectory.single_atom(i),
                    trajectory.single_atom(j),
                    nucleus1,
                    nucleus2,
                    n_frames,
                    noangle=config.noangle,
                )

                if config.filter is None or result.coupling_mean >= config.filter:
                    outf.write(format_record(_label(trajectory, i), _label(trajectory, j), result) + "\n")
                    recorded += 1
                else:
                    ignored += 1
                    logger.debug(f"Ignored pair ({i}, {j}): {result.coupling_mean:.1f} Hz")

                done += 1
                if checkpoint and done % checkpoint == 0:
                    progress.update(done, total)
            if cancelled:
                break

    if cancelled:
        logger.warning(f"Cancelled after {done} of {total} pairs; {config.output_path} is incomplete.")
    logger.info(f"Output {recorded} couplings to {config.output_path}")
    if config.filter is not None:
        logger.info(f"Ignored {ignored} couplings less than {config.filter} Hz")
    else:
        logger.info(f"Ignored {ignored} couplings (no filter)")

    return EnumerationSummary(recorded, ignored, total, config.output_path, cancelled)
