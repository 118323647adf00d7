import numpy as np
import pytest
from numpy.testing import assert_array_equal

from mne_tvar import compute_window_starts
from mne_tvar.utils import _check_order


@pytest.mark.parametrize('sfreq, tlims, win_len, win_step', [
    (100., (0., 10.), 5., 5.),
    (100., (0., 10.), 0.5, 0.03),
    (256., (0.2, 3.), 0.5, 0.1),
    (1000., (0., 2.), 0.3, 0.25),
])
def test_compute_window_starts(sfreq, tlims, win_len, win_step):
    """Test the number and placement of the windows."""
    starts = compute_window_starts(sfreq, tlims, win_len, win_step)
    t0, t1 = tlims
    n_expected = int(np.floor((t1 - t0 - win_len) / win_step + 1e-9)) + 1
    assert len(starts) == n_expected
    assert starts.dtype.kind == 'i'
    assert np.all(np.diff(starts) > 0)
    assert starts[0] == int(np.floor(t0 * sfreq + 1e-9))
    # every window ends within the time range
    assert (starts[-1] + win_len * sfreq) <= t1 * sfreq + 1e-6
    # and no further window would
    assert (starts[-1] + (win_step + win_len) * sfreq) > t1 * sfreq - 1


def test_compute_window_starts_exact():
    """Test window starts on a simple grid."""
    starts = compute_window_starts(100., (0., 10.), 5., 5.)
    assert_array_equal(starts, [0, 500])
    starts = compute_window_starts(100., (0., 10.), 2., 1.)
    assert_array_equal(starts, [0, 100, 200, 300, 400, 500, 600, 700, 800])
    # floating point accumulation does not drop the last window
    starts = compute_window_starts(10., (0., 1.), 0.3, 0.1)
    assert_array_equal(starts, [0, 1, 2, 3, 4, 5, 6, 7])


def test_compute_window_starts_empty():
    """Test that invalid ranges yield no windows."""
    for args in [(100., (0., 1.), 2., 1.),
                 (100., (0., 1.), 0., 1.),
                 (100., (0., 1.), 0.5, 0.),
                 (100., (0., 1.), 0.5, -0.1)]:
        starts = compute_window_starts(*args)
        assert starts.shape == (0,)


def test_compute_window_starts_explicit():
    """Test that explicit starts are used as is."""
    starts = compute_window_starts(100., (0., 1.), 5., 5.,
                                   win_start_idx=[3, 40, 7])
    assert_array_equal(starts, [3, 40, 7])
    starts = compute_window_starts(100., None, None, None, win_start_idx=9)
    assert_array_equal(starts, [9])


def test_compute_window_starts_subsampling():
    """Test the random selection of windows."""
    all_starts = compute_window_starts(100., (0., 10.), 0.5, 0.1)
    assert len(all_starts) == 96
    for prct in (1, 10, 33.3, 50, 99.9):
        starts = compute_window_starts(100., (0., 10.), 0.5, 0.1,
                                       prct_win_to_sample=prct,
                                       random_state=0)
        assert len(starts) == int(np.ceil(96 * prct / 100.))
        assert np.all(np.diff(starts) > 0)
        assert np.all(np.isin(starts, all_starts))
    starts = compute_window_starts(100., (0., 10.), 0.5, 0.1,
                                   prct_win_to_sample=100, random_state=0)
    assert_array_equal(starts, all_starts)

    # reproducible with a seed
    kwargs = dict(prct_win_to_sample=20, random_state=42)
    assert_array_equal(
        compute_window_starts(100., (0., 10.), 0.5, 0.1, **kwargs),
        compute_window_starts(100., (0., 10.), 0.5, 0.1, **kwargs))
    rng = np.random.RandomState(0)
    starts = compute_window_starts(100., (0., 10.), 0.5, 0.1,
                                   prct_win_to_sample=20, random_state=rng)
    assert len(starts) == 20

    for prct in (0, -5, 100.5):
        with pytest.raises(ValueError, match='prct_win_to_sample'):
            compute_window_starts(100., (0., 10.), 0.5, 0.1,
                                  prct_win_to_sample=prct)


def test_check_order():
    """Test the model order checks."""
    assert _check_order(3) == (3, 3)
    assert _check_order(np.int64(3)) == (3, 3)
    assert _check_order([2, 5], selects_order=True) == (2, 5)
    assert _check_order([4], selects_order=True) == (4, 4)
    with pytest.raises(ValueError, match='order range'):
        _check_order([2, 5])
    with pytest.raises(ValueError, match='positive'):
        _check_order(-1)
    with pytest.raises(ValueError, match='positive integer'):
        _check_order('2')
