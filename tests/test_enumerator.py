import logging

import pytest
import numpy as np
import biotite.structure as struc

from dipolar_nmr.exceptions import InvalidGeometryError, OutputWriteError, UnknownNucleusError
from dipolar_nmr.enumerator import (
    OUTPUT_HEADER,
    CancellationToken,
    EnumerationConfig,
    ProgressObserver,
    count_pairs,
    enumerate_pairs,
    format_atom_label,
    format_record,
)
from dipolar_nmr.sampler import PairResult, sample_pair
from dipolar_nmr.trajectory import Trajectory


def make_trajectory(coords, atom_names=None, res_ids=None, res_names=None):
    """Build a Trajectory from (frames, atoms, 3) coordinates."""
    coords = np.asarray(coords, dtype=float)
    n_frames, n_atoms = coords.shape[:2]
    stack = struc.AtomArrayStack(n_frames, n_atoms)
    stack.coord = coords
    stack.chain_id = np.array(["A"] * n_atoms)
    stack.res_id = np.array(res_ids if res_ids is not None else list(range(1, n_atoms + 1)))
    stack.res_name = np.array(res_names if res_names is not None else ["ALA"] * n_atoms)
    stack.atom_name = np.array(atom_names if atom_names is not None else ["H"] * n_atoms)
    stack.element = np.array(["H"] * n_atoms)
    return Trajectory(stack)


def line_of_atoms(n_atoms, spacing=2.0):
    """Single-frame trajectory with atoms spaced along z."""
    coords = np.zeros((1, n_atoms, 3))
    coords[0, :, 2] = np.arange(n_atoms) * spacing
    return make_trajectory(coords)


class RecordingProgress(ProgressObserver):
    def __init__(self):
        self.calls = []

    def update(self, done, total):
        self.calls.append((done, total))


def read_rows(path):
    with open(path, encoding="utf-8") as f:
        lines = f.read().splitlines()
    assert lines[0] == OUTPUT_HEADER
    return lines[1:]


def test_format_record():
    result = PairResult(2.5, 0.70710678, 12.345, 1.05, 21647.697, 3.21, 21600.04)
    row = format_record(format_atom_label("ALA", 1, "N"), format_atom_label("ALA", 1, "H"), result)
    assert row == "ALA-1-N\tALA-1-H\t2.50±0.71\t12.3±1.1\t21647.7±3.2\t21600.0"


def test_amide_row(tmp_path):
    """One N-H pair along z, single frame."""
    trajectory = make_trajectory(
        [[[0.0, 0.0, 0.0], [0.0, 0.0, 1.04]]],
        atom_names=["N", "H"],
        res_ids=[1, 1],
    )
    out = tmp_path / "nh.dat"
    summary = enumerate_pairs(trajectory, [0], "15N", [1], "1H", EnumerationConfig(output_path=str(out)))

    assert (summary.recorded, summary.ignored, summary.total) == (1, 0, 1)
    assert summary.cancelled is False
    assert read_rows(out) == ["ALA-1-N\tALA-1-H\t1.04±0.00\t0.0±0.0\t21647.7±0.0\t21647.7"]


def test_self_pairs_excluded(tmp_path):
    trajectory = line_of_atoms(3)
    out = tmp_path / "pairs.dat"
    summary = enumerate_pairs(trajectory, [0, 1], "1H", [1, 2], "1H", EnumerationConfig(output_path=str(out)))

    assert summary.total == 3
    assert summary.recorded == 3
    rows = read_rows(out)
    labels = [tuple(row.split("\t")[:2]) for row in rows]
    # indices1 outer, indices2 inner, (1, 1) skipped
    assert labels == [("ALA-1-H", "ALA-2-H"), ("ALA-1-H", "ALA-3-H"), ("ALA-2-H", "ALA-3-H")]


def test_same_selection_both_roles(tmp_path):
    trajectory = line_of_atoms(3)
    out = tmp_path / "all.dat"
    summary = enumerate_pairs(trajectory, [0, 1, 2], "1H", [0, 1, 2], "1H", EnumerationConfig(output_path=str(out)))
    assert summary.total == 6
    assert len(read_rows(out)) == 6
    assert count_pairs([0, 1, 2], [0, 1, 2]) == 6
    assert count_pairs([4], [4]) == 0


def test_filter_is_inclusive(tmp_path):
    trajectory = line_of_atoms(2)
    reference = sample_pair(trajectory.single_atom(0), trajectory.single_atom(1), "1H", "1H", 1)

    out = tmp_path / "equal.dat"
    config = EnumerationConfig(filter=reference.coupling_mean, output_path=str(out))
    summary = enumerate_pairs(trajectory, [0], "1H", [1], "1H", config)
    assert (summary.recorded, summary.ignored) == (1, 0)
    assert len(read_rows(out)) == 1

    out = tmp_path / "above.dat"
    config = EnumerationConfig(filter=float(np.nextafter(reference.coupling_mean, np.inf)), output_path=str(out))
    summary = enumerate_pairs(trajectory, [0], "1H", [1], "1H", config)
    assert (summary.recorded, summary.ignored) == (0, 1)
    assert read_rows(out) == []


def test_filter_separates_near_and_far(tmp_path):
    # atoms at z = 0, 2, 4: the 0-4 pair is 8x weaker than the neighbours
    trajectory = line_of_atoms(3)
    near = sample_pair(trajectory.single_atom(0), trajectory.single_atom(1), "1H", "1H", 1).coupling_mean
    out = tmp_path / "filtered.dat"
    config = EnumerationConfig(filter=near / 2, output_path=str(out))
    summary = enumerate_pairs(trajectory, [0, 1, 2], "1H", [0, 1, 2], "1H", config)
    assert summary.total == 6
    assert summary.recorded == 4
    assert summary.ignored == 2
    assert summary.recorded + summary.ignored == summary.total


def test_noangle_zeroes_angle_columns(tmp_path):
    coords = np.array([[[0, 0, 0], [1.0, 1.0, 0.0]], [[0, 0, 0], [0.0, 1.5, 0.5]]])
    trajectory = make_trajectory(coords)
    out = tmp_path / "mas.dat"
    enumerate_pairs(trajectory, [0], "1H", [1], "13C", EnumerationConfig(noangle=True, output_path=str(out)))
    row = read_rows(out)[0].split("\t")
    assert row[3] == "0.0±0.0"


def test_progress_checkpoints(tmp_path):
    trajectory = line_of_atoms(5)
    progress = RecordingProgress()
    ids = list(range(5))
    summary = enumerate_pairs(
        trajectory, ids, "1H", ids, "1H",
        EnumerationConfig(output_path=str(tmp_path / "p.dat")),
        progress=progress,
    )
    assert summary.total == 20
    assert progress.calls == [(done, 20) for done in range(2, 21, 2)]


def test_no_progress_below_ten_pairs(tmp_path):
    trajectory = line_of_atoms(3)
    progress = RecordingProgress()
    enumerate_pairs(
        trajectory, [0, 1, 2], "1H", [0, 1, 2], "1H",
        EnumerationConfig(output_path=str(tmp_path / "p.dat")),
        progress=progress,
    )
    assert progress.calls == []


def test_cancellation_between_pairs(tmp_path):
    trajectory = line_of_atoms(5)
    token = CancellationToken()

    class CancelOnFirstCheckpoint(ProgressObserver):
        def update(self, done, total):
            token.cancel()

    out = tmp_path / "cancelled.dat"
    ids = list(range(5))
    summary = enumerate_pairs(
        trajectory, ids, "1H", ids, "1H",
        EnumerationConfig(output_path=str(out)),
        progress=CancelOnFirstCheckpoint(),
        cancel_token=token,
    )
    assert summary.cancelled is True
    assert summary.recorded == 2
    assert summary.total == 20
    assert len(read_rows(out)) == 2


def test_unwritable_output_fails_before_sampling(tmp_path, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("sampling should not start")

    monkeypatch.setattr("dipolar_nmr.enumerator.sample_pair", fail)
    trajectory = line_of_atoms(2)
    config = EnumerationConfig(output_path=str(tmp_path / "missing" / "out.dat"))
    with pytest.raises(OutputWriteError) as excinfo:
        enumerate_pairs(trajectory, [0], "1H", [1], "1H", config)
    assert isinstance(excinfo.value, OSError)


def test_unknown_nucleus_fails_before_writing(tmp_path):
    trajectory = line_of_atoms(2)
    out = tmp_path / "never.dat"
    with pytest.raises(UnknownNucleusError):
        enumerate_pairs(trajectory, [0], "2H", [1], "1H", EnumerationConfig(output_path=str(out)))
    assert not out.exists()


def test_error_mid_run_closes_file(tmp_path):
    # atoms 0 and 1 coincide: the second pair has zero distance
    trajectory = make_trajectory([[[0, 0, 5.0], [0, 0, 5.0], [0, 0, 0]]])
    out = tmp_path / "partial.dat"
    with pytest.raises(InvalidGeometryError):
        enumerate_pairs(trajectory, [2, 0], "1H", [0, 1], "1H", EnumerationConfig(output_path=str(out)))
    # rows written before the failure stay on disk
    assert len(read_rows(out)) == 2


def test_run_summary_logged(tmp_path, caplog):
    caplog.set_level(logging.INFO)
    trajectory = line_of_atoms(3)
    out = tmp_path / "log.dat"
    enumerate_pairs(trajectory, [0], "1H", [1, 2], "1H", EnumerationConfig(filter=1e9, output_path=str(out)))
    assert "1 atoms in selection 1 assigned type 1H" in caplog.text
    assert "Computing dipolar couplings for 2 internuclear pairs over 1 frames" in caplog.text
    assert f"Output 0 couplings to {out}" in caplog.text
    assert "Ignored 2 couplings less than 1000000000.0 Hz" in caplog.text


def test_config_validation():
    with pytest.raises(ValueError):
        EnumerationConfig(filter=-1.0)
    with pytest.raises(ValueError):
        EnumerationConfig(filter=float("nan"))
    with pytest.raises(ValueError):
        EnumerationConfig(output_path="")
    with pytest.raises(TypeError):
        EnumerationConfig(out="x.dat")
    config = EnumerationConfig()
    assert (config.noangle, config.filter, config.output_path) == (False, None, "dipolar.dat")


def test_unfiltered_run_logs_ignored_count(tmp_path, caplog):
    caplog.set_level(logging.INFO)
    trajectory = line_of_atoms(3)
    out = tmp_path / "all.dat"
    enumerate_pairs(trajectory, [0], "1H", [1, 2], "1H", EnumerationConfig(output_path=str(out)))
    assert f"Output 2 couplings to {out}" in caplog.text
    assert "Ignored 0 couplings (no filter)" in caplog.text


def test_output_handle_closed_after_error(tmp_path, monkeypatch):
    import dipolar_nmr.enumerator as enumerator

    handles = []

    def tracking_open(*args, **kwargs):
        handle = open(*args, **kwargs)
        handles.append(handle)
        return handle

    monkeypatch.setattr(enumerator, "open", tracking_open, raising=False)
    trajectory = make_trajectory([[[0, 0, 5.0], [0, 0, 5.0], [0, 0, 0]]])
    with pytest.raises(InvalidGeometryError):
        enumerate_pairs(
            trajectory, [0], "1H", [1], "1H",
            EnumerationConfig(output_path=str(tmp_path / "closed.dat")),
        )
    assert len(handles) == 1
    assert handles[0].closed
