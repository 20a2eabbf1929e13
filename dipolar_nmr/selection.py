"""
Atom selector interface.

A selector is a group of atoms bound to a multi-frame coordinate source with
a frame cursor. Callers position the cursor with set_frame() and then read
the centroid of the group at that frame. The two calls are an ordered
protocol: a centroid always refers to the most recently set frame.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

import numpy as np

from .exceptions import EmptySelectionError


class AtomSelector(ABC):
    """Group of atoms with a frame cursor over a trajectory."""

    @property
    @abstractmethod
    def n_frames(self) -> int:
        """Number of frames available to set_frame()."""

    @abstractmethod
    def set_frame(self, frame: int) -> None:
        """Move the frame cursor."""

    @abstractmethod
    def centroid(self) -> np.ndarray:
        """Centroid (3,) of the selected atoms at the current frame."""

    @abstractmethod
    def indices(self) -> List[int]:
        """Atom ids of the selection, in order."""

    @abstractmethod
    def attribute(self, name: str) -> list:
        """Per-atom values of an annotation (e.g. "resname")."""


def _check_frame(frame: int, n_frames: int) -> None:
    if not 0 <= frame < n_frames:
        raise IndexError(f"Frame {frame} out of range for {n_frames} frame(s)")


class InMemorySelector(AtomSelector):
    """
    Selector over plain coordinate arrays.

    Useful for tests and scripted analyses where no structure file exists.

    Args:
        coords: (n_frames, n_atoms, 3) or (n_atoms, 3) array in Angstroms.
        atom_ids: Optional ids for the atoms (default 0..n_atoms-1).
        attributes: Optional per-atom annotation lists keyed by name.
    """

    def __init__(
        self,
        coords: np.ndarray,
        atom_ids: Optional[Sequence[int]] = None,
        attributes: Optional[Dict[str, list]] = None,
    ):
        coords = np.asarray(coords, dtype=float)
        if coords.ndim == 2:
            coords = coords[np.newaxis]
        if coords.ndim != 3 or coords.shape[2] != 3:
            raise ValueError(f"Coordinates must have shape (frames, atoms, 3), got {coords.shape}")
        self.coords = coords
        n_atoms = coords.shape[1]
        self._atom_ids = list(atom_ids) if atom_ids is not None else list(range(n_atoms))
        if len(self._atom_ids) != n_atoms:
            raise ValueError(f"Got {len(self._atom_ids)} atom ids for {n_atoms} atoms")
        self._attributes = dict(attributes or {})
        self._frame = 0

    @property
    def n_frames(self) -> int:
        return self.coords.shape[0]

    def set_frame(self, frame: int) -> None:
        _check_frame(frame, self.n_frames)
        self._frame = frame

    def centroid(self) -> np.ndarray:
        if self.coords.shape[1] == 0:
            raise EmptySelectionError("Selection contains no atoms")
        return self.coords[self._frame].mean(axis=0)

    def indices(self) -> List[int]:
        return list(self._atom_ids)

    def attribute(self, name: str) -> list:
        if name not in self._attributes:
            raise ValueError(f"Unknown attribute '{name}'")
        return list(self._attributes[name])
