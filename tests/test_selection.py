import pytest
import numpy as np

from dipolar_nmr.exceptions import EmptySelectionError
from dipolar_nmr.selection import AtomSelector, InMemorySelector


def test_in_memory_selector_frames():
    coords = np.array([
        [[0.0, 0.0, 0.0], [2.0, 0.0, 0.0]],
        [[0.0, 0.0, 1.0], [2.0, 0.0, 1.0]],
    ])
    sel = InMemorySelector(coords, atom_ids=[7, 9], attributes={"resname": ["ALA", "GLY"]})

    assert isinstance(sel, AtomSelector)
    assert sel.n_frames == 2
    assert sel.indices() == [7, 9]
    assert sel.attribute("resname") == ["ALA", "GLY"]

    np.testing.assert_allclose(sel.centroid(), [1.0, 0.0, 0.0])
    sel.set_frame(1)
    np.testing.assert_allclose(sel.centroid(), [1.0, 0.0, 1.0])


def test_single_structure_promoted_to_one_frame():
    sel = InMemorySelector(np.array([[1.0, 2.0, 3.0]]))
    assert sel.n_frames == 1
    assert sel.indices() == [0]


def test_bad_shapes_rejected():
    with pytest.raises(ValueError):
        InMemorySelector(np.zeros((2, 3, 2)))
    with pytest.raises(ValueError):
        InMemorySelector(np.zeros((1, 2, 3)), atom_ids=[1])


def test_errors():
    sel = InMemorySelector(np.zeros((1, 0, 3)))
    with pytest.raises(EmptySelectionError):
        sel.centroid()
    with pytest.raises(IndexError):
        sel.set_frame(1)
    with pytest.raises(ValueError):
        sel.attribute("resid")
