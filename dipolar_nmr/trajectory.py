"""
Structure / trajectory provider backed by biotite.

Wraps a biotite AtomArrayStack (one AtomArray per frame) and hands out
TrajectorySelection objects implementing the AtomSelector interface.
File parsing is delegated to biotite.structure.io.
"""

import logging
from typing import Callable, List, Optional, Sequence, Union

import numpy as np
import biotite.structure as struc
import biotite.structure.io as strucio

from .exceptions import EmptySelectionError
from .selection import AtomSelector, _check_frame

logger = logging.getLogger(__name__)

# Short attribute names (as used in atom labels) -> biotite annotation names
ATTRIBUTE_ALIASES = {
    "resname": "res_name",
    "resid": "res_id",
    "name": "atom_name",
}

SelectionLike = Union[None, np.ndarray, Sequence[int], Callable[[struc.AtomArray], np.ndarray]]


def _annotation_name(name: str) -> str:
    return ATTRIBUTE_ALIASES.get(name, name)


def _to_python(value):
    # numpy scalars -> builtins, so labels format as "ALA-5-N" not "ALA-np.int64(5)-N"
    return value.item() if hasattr(value, "item") else value


class Trajectory:
    """
    A loaded structure or trajectory.

    Args:
        atoms: A biotite AtomArray (single structure) or AtomArrayStack
            (one model per frame). A single AtomArray becomes a 1-frame stack.
    """

    def __init__(self, atoms: Union[struc.AtomArray, struc.AtomArrayStack]):
        if isinstance(atoms, struc.AtomArray):
            atoms = struc.stack([atoms])
        elif not isinstance(atoms, struc.AtomArrayStack):
            raise TypeError(f"Expected AtomArray or AtomArrayStack, got {type(atoms).__name__}")
        self.atoms = atoms

    @classmethod
    def from_file(cls, structure_path: str, trajectory_path: Optional[str] = None) -> "Trajectory":
        """
        Load a structure file, optionally with a trajectory on top of it.

        Args:
            structure_path: Any format biotite can read (PDB, PDBx/mmCIF, ...).
                Multi-model files become multi-frame trajectories.
            trajectory_path: Optional coordinate-only trajectory (XTC, DCD,
                TRR, ...). The structure file then serves as topology template.
        """
        logger.info(f"Loading structure from {structure_path}")
        atoms = strucio.load_structure(structure_path)
        if trajectory_path is not None:
            template = atoms[0] if isinstance(atoms, struc.AtomArrayStack) else atoms
            logger.info(f"Loading trajectory from {trajectory_path}")
            atoms = strucio.load_structure(trajectory_path, template=template)
        trajectory = cls(atoms)
        logger.debug(
            f"Loaded {trajectory.n_atoms} atoms over {trajectory.frame_count()} frame(s)."
        )
        return trajectory

    @property
    def n_atoms(self) -> int:
        return self.atoms.array_length()

    def frame_count(self) -> int:
        return self.atoms.stack_depth()

    def select(self, selection: SelectionLike = None, **criteria) -> "TrajectorySelection":
        """
        Select atoms.

        Args:
            selection: Boolean mask over all atoms, a sequence of atom ids,
                or a callable taking the first-frame AtomArray and returning
                a boolean mask. None selects every atom.
            **criteria: Annotation filters, e.g. atom_name="N" or
                res_id=[1, 2, 3]. Combined with each other (and with
                `selection`) by logical AND.

        Returns:
            TrajectorySelection over the matching atoms, in atom order.
        """
        mask = np.ones(self.n_atoms, dtype=bool)

        if callable(selection):
            selection = selection(self.atoms[0])

        if selection is not None:
            selection = np.asarray(selection)
            if selection.dtype == bool:
                if selection.shape != (self.n_atoms,):
                    raise ValueError(
                        f"Boolean mask has shape {selection.shape}, expected ({self.n_atoms},)"
                    )
                mask &= selection
            else:
                ids = selection.astype(int).ravel()
                if np.any((ids < 0) | (ids >= self.n_atoms)):
                    raise IndexError(f"Atom id out of range for {self.n_atoms} atoms")
                id_mask = np.zeros(self.n_atoms, dtype=bool)
                id_mask[ids] = True
                mask &= id_mask

        categories = self.atoms.get_annotation_categories()
        for key, values in criteria.items():
            annotation = _annotation_name(key)
            if annotation not in categories:
                raise ValueError(f"Unknown annotation '{key}'")
            if np.isscalar(values):
                values = [values]
            mask &= np.isin(self.atoms.get_annotation(annotation), list(values))

        return TrajectorySelection(self, np.nonzero(mask)[0])

    def indices(self, selection: Union["TrajectorySelection", SelectionLike]) -> List[int]:
        if not isinstance(selection, TrajectorySelection):
            selection = self.select(selection)
        return selection.indices()

    def attribute(self, atom_id: int, name: str):
        """Value of an annotation (resname, resid, name or any biotite category) for one atom."""
        annotation = _annotation_name(name)
        if annotation not in self.atoms.get_annotation_categories():
            raise ValueError(f"Unknown attribute '{name}'")
        return _to_python(self.atoms.get_annotation(annotation)[atom_id])

    def single_atom(self, atom_id: int) -> "TrajectorySelection":
        if not 0 <= atom_id < self.n_atoms:
            raise IndexError(f"Atom id {atom_id} out of range for {self.n_atoms} atoms")
        return TrajectorySelection(self, np.array([atom_id]))


class TrajectorySelection(AtomSelector):
    """AtomSelector over a subset of the atoms of a Trajectory."""

    def __init__(self, trajectory: Trajectory, atom_ids: np.ndarray):
        self.trajectory = trajectory
        self._atom_ids = np.asarray(atom_ids, dtype=int)
        self._frame = 0

    def __len__(self) -> int:
        return len(self._atom_ids)

    @property
    def n_frames(self) -> int:
        return self.trajectory.frame_count()

    def set_frame(self, frame: int) -> None:
        _check_frame(frame, self.n_frames)
        self._frame = frame

    def centroid(self) -> np.ndarray:
        if len(self._atom_ids) == 0:
            raise EmptySelectionError("Selection contains no atoms")
        coords = self.trajectory.atoms.coord[self._frame, self._atom_ids]
        # biotite stores float32 coordinates
        return np.asarray(struc.centroid(coords), dtype=np.float64)

    def indices(self) -> List[int]:
        return [int(i) for i in self._atom_ids]

    def attribute(self, name: str) -> list:
        return [self.trajectory.attribute(int(i), name) for i in self._atom_ids]
