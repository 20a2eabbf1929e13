"""
The three entry points of dipolar-nmr: coupling, pair and pairlist.

Each can be used on its own:
    coupling()  - formula only, no structure needed.
    pair()      - one pair of atom groups over a trajectory.
    pairlist()  - every pair between two selections, written to a table.
"""

import logging
from typing import Optional

from .calculator import calculate_dipolar_coupling
from .enumerator import (
    DEFAULT_OUTPUT,
    CancellationToken,
    EnumerationConfig,
    EnumerationSummary,
    ProgressObserver,
    enumerate_pairs,
)
from .sampler import PairResult, sample_pair
from .selection import AtomSelector
from .trajectory import TrajectorySelection

logger = logging.getLogger(__name__)


def coupling(distance: float, angle: float, nucleus1: str, nucleus2: str) -> float:
    """Dipolar coupling (Hz) for a distance (A), angle (deg) and two nuclei."""
    return calculate_dipolar_coupling(distance, angle, nucleus1, nucleus2)


def pair(
    selector1: AtomSelector,
    nucleus1: str,
    selector2: AtomSelector,
    nucleus2: str,
    noangle: bool = False,
) -> PairResult:
    """
    Trajectory-averaged dipolar coupling between the centroids of two atom groups.

    Returns:
        PairResult 7-tuple (distance_mean, distance_std, angle_mean,
        angle_std, coupling_mean, coupling_std, coupling_from_means).
    """
    n_frames = selector1.n_frames
    if selector2.n_frames != n_frames:
        raise ValueError(
            f"Selectors cover different trajectories ({n_frames} vs {selector2.n_frames} frames)"
        )
    return sample_pair(selector1, selector2, nucleus1, nucleus2, n_frames, noangle=noangle)


def pairlist(
    selection1: TrajectorySelection,
    nucleus1: str,
    selection2: TrajectorySelection,
    nucleus2: str,
    noangle: bool = False,
    filter: Optional[float] = None,
    out: str = DEFAULT_OUTPUT,
    progress: Optional[ProgressObserver] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> EnumerationSummary:
    """
    Dipolar couplings for every atom pair between two selections.

    Writes a tab-separated table to `out` and logs a run summary.

    Args:
        selection1, selection2: Selections from the same Trajectory.
        nucleus1, nucleus2: Isotope symbols assigned to each selection.
        noangle: Ignore orientation (angle fixed at 0).
        filter: Only write pairs whose averaged coupling is >= filter Hz.
        out: Output path.
        progress: Optional progress observer.
        cancel_token: Optional cooperative cancellation token.
    """
    trajectory = selection1.trajectory
    if selection2.trajectory is not trajectory:
        raise ValueError("Both selections must come from the same Trajectory")

    config = EnumerationConfig(noangle=noangle, filter=filter, output_path=out)
    return enumerate_pairs(
        trajectory,
        selection1.indices(),
        nucleus1,
        selection2.indices(),
        nucleus2,
        config,
        progress=progress,
        cancel_token=cancel_token,
    )
