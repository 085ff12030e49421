import logging
import math

import numpy as np
import pytest

from uneven_planner.errors import EmptyPathError, InsufficientDataError, PersistenceError
from uneven_planner.reference_path import (
    CsvPathSource, estimate_headings, read_path_from_csv, save_path_to_csv, unwrap_yaw,
)


def test_straight_line_headings_match_direction():
    angle = math.radians(30.0)
    s = np.array([0.0, 0.4, 1.1, 2.0, 3.7])
    xy = np.column_stack([s * math.cos(angle), s * math.sin(angle)])

    path = estimate_headings(xy)

    assert path.shape == (5, 3)
    np.testing.assert_allclose(path[:, :2], xy)
    np.testing.assert_allclose(path[:, 2], angle)


def test_end_samples_use_one_sided_differences():
    path = estimate_headings([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)])

    assert path[0, 2] == pytest.approx(0.0)
    assert path[1, 2] == pytest.approx(math.pi / 4)
    assert path[2, 2] == pytest.approx(math.pi / 2)


def test_two_samples_share_heading():
    path = estimate_headings([(0.0, 0.0), (0.0, -2.0)])
    np.testing.assert_allclose(path[:, 2], -math.pi / 2)


@pytest.mark.parametrize('xy', [[], [(1.0, 2.0)]])
def test_too_few_samples(xy):
    with pytest.raises(InsufficientDataError):
        estimate_headings(xy)


@pytest.mark.parametrize('xy', [
    [[0.0], [1.0], [2.0]],
    [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0)],
    [0.0, 1.0, 2.0, 3.0],
])
def test_samples_must_be_xy_pairs(xy):
    with pytest.raises(InsufficientDataError, match='shape'):
        estimate_headings(xy)


def test_unwrap_single_correction():
    path = np.array([[0.0, 0.0, 3.0], [1.0, 0.0, -3.0]])

    out = unwrap_yaw(path)

    assert out[1, 2] == pytest.approx(-3.0 + 2 * math.pi)
    assert out[1, 2] == pytest.approx(3.28318, abs=1e-5)
    # input untouched
    assert path[1, 2] == -3.0


def test_unwrap_alternating_near_pi():
    yaw = np.array([3.1, -3.1, 3.12, -3.13, 3.14, -3.1, 3.09])
    path = np.column_stack([np.arange(len(yaw)), np.zeros(len(yaw)), yaw])

    out = unwrap_yaw(path)

    assert np.all(np.abs(np.diff(out[:, 2])) < math.pi / 2)
    np.testing.assert_array_equal(out[:, :2], path[:, :2])


def test_unwrap_is_sequential_over_many_turns():
    # a spiral: headings keep increasing, raw values wrap several times
    true_yaw = np.linspace(0.0, 6 * math.pi, 60)
    raw = np.arctan2(np.sin(true_yaw), np.cos(true_yaw))
    path = np.column_stack([np.zeros(60), np.zeros(60), raw])

    out = unwrap_yaw(path)

    np.testing.assert_allclose(out[:, 2], true_yaw, atol=1e-9)


def test_unwrap_matches_numpy_for_small_steps():
    rng = np.random.default_rng(7)
    steps = rng.uniform(-1.2, 1.2, size=200)
    true_yaw = np.cumsum(steps)
    raw = np.arctan2(np.sin(true_yaw), np.cos(true_yaw))
    path = np.column_stack([np.zeros(200), np.zeros(200), raw])

    out = unwrap_yaw(path)

    assert np.all(np.abs(np.diff(out[:, 2])) < math.pi / 2)
    np.testing.assert_allclose(out[:, 2], np.unwrap(raw), atol=1e-9)


def test_unwrap_reversal_is_reported(caplog):
    path = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 2.0]])

    with caplog.at_level(logging.WARNING, logger='uneven_planner.reference_path'):
        out = unwrap_yaw(path)

    assert out[1, 2] == pytest.approx(2.0)
    assert 'reversal' in caplog.text


def test_read_path_skips_header_comments_and_blanks(tmp_path):
    csv = tmp_path / 'reference.csv'
    csv.write_text("x,y,yaw\n1.0,2.0,0.1\n\n# checkpoint\n3.5,-4.0,0.2\n")

    xy = read_path_from_csv(str(csv))

    np.testing.assert_allclose(xy, [[-1.0, -2.0], [-3.5, 4.0]])


def test_read_path_without_mirror(tmp_path):
    csv = tmp_path / 'reference.csv'
    csv.write_text("# x, y\n1.0, 2.0\n3.0, 4.0\n")

    xy = read_path_from_csv(str(csv), mirror=False)

    np.testing.assert_allclose(xy, [[1.0, 2.0], [3.0, 4.0]])


def test_read_path_header_only(tmp_path):
    csv = tmp_path / 'reference.csv'
    csv.write_text("x,y\n")

    assert read_path_from_csv(str(csv)).shape == (0, 2)


def test_save_path_to_csv(tmp_path):
    out = tmp_path / 'result.csv'

    assert save_path_to_csv(np.array([[1.0, 2.0], [-0.5, 3.25]]), str(out))
    assert out.read_text().splitlines() == ['1.0,2.0', '-0.5,3.25']


def test_save_path_to_csv_bad_directory(tmp_path):
    with pytest.raises(PersistenceError):
        save_path_to_csv([[0.0, 0.0]], str(tmp_path / 'missing' / 'result.csv'))


def test_csv_source_missing_file(tmp_path):
    source = CsvPathSource(str(tmp_path / 'nope.csv'))
    assert source.plan(np.zeros(3), np.zeros(3)).size == 0


def test_csv_source_reads_file(tmp_path):
    csv = tmp_path / 'reference.csv'
    csv.write_text("x,y\n0.0,0.0\n-1.0,0.0\n-2.0,0.0\n")

    path = CsvPathSource(str(csv)).plan(np.zeros(3), np.ones(3))

    np.testing.assert_allclose(path, [[0.0, 0.0], [1.0, 0.0], [2.0, 0.0]])


class RecordingLogger:
    def __init__(self):
        self.records = []

    def info(self, msg):
        self.records.append(('info', msg))

    def warning(self, msg):
        self.records.append(('warning', msg))

    def error(self, msg):
        self.records.append(('error', msg))


def test_unwrap_reversal_goes_to_given_logger():
    log = RecordingLogger()

    unwrap_yaw(np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 2.0]]), logger=log)

    assert len(log.records) == 1
    level, msg = log.records[0]
    assert level == 'warning'
    assert 'reversal' in msg


def test_csv_source_logs_to_given_logger(tmp_path):
    log = RecordingLogger()
    missing = CsvPathSource(str(tmp_path / 'nope.csv'), logger=log)
    missing.plan(np.zeros(3), np.zeros(3))

    csv = tmp_path / 'reference.csv'
    csv.write_text("x,y\n0.0,0.0\n1.0,0.0\n")
    CsvPathSource(str(csv), logger=log).plan(np.zeros(3), np.zeros(3))

    assert [level for level, _ in log.records] == ['error', 'info']
    assert 'not found' in log.records[0][1]
    assert 'Loaded 2 reference samples' in log.records[1][1]


def test_read_path_ignores_extra_columns_on_later_rows(tmp_path):
    csv = tmp_path / 'reference.csv'
    csv.write_text("x,y\n0.0,0.0\n1.0,0.0\n2.0,0.0,0.1,extra\n3.0,0.0\n")

    xy = read_path_from_csv(str(csv), mirror=False)

    np.testing.assert_allclose(xy, [[0.0, 0.0], [1.0, 0.0], [2.0, 0.0], [3.0, 0.0]])


@pytest.mark.parametrize('text', [
    "x,y\n0.0,0.0\nabc,1.0\n",
    "x\n0.0\n1.0\n",
])
def test_read_path_malformed_file(tmp_path, text):
    csv = tmp_path / 'reference.csv'
    csv.write_text(text)

    with pytest.raises(EmptyPathError, match='Could not parse'):
        read_path_from_csv(str(csv))
