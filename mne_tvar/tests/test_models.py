import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from mne_tvar import TimeVaryingVAR


def _model(ar, n_windows=2, **kwargs):
    n_nodes = ar.shape[0]
    pe = np.eye(n_nodes)
    return TimeVaryingVAR([ar] * n_windows, [pe] * n_windows,
                          ar.shape[1] // n_nodes, 200.,
                          np.arange(n_windows) * 0.5, 1., 0.5, 'arfit',
                          n_nodes, **kwargs)


def test_time_varying_var_layout(var2_coefs):
    """Test access to the coefficients of a window."""
    model = _model(var2_coefs, names=list('abcde'), tmin=-0.2,
                   condition='task')
    assert model.n_windows == 2
    assert model.names == list('abcde')
    assert model.rc == [None, None]
    assert model.info == [None, None]
    assert_allclose(model.win_center_times, [0.5, 1.])
    assert_allclose(model.er_win_center_times, [0.3, 0.8])

    coefs = model.get_coefs(1)
    assert coefs.shape == (2, 5, 5)
    assert_array_equal(coefs[0], var2_coefs[:, :5])
    assert_array_equal(coefs[1], var2_coefs[:, 5:])

    companion = model.companion(0)
    assert_array_equal(companion[:5], var2_coefs)
    assert_array_equal(companion[5:], np.hstack([np.eye(5),
                                                 np.zeros((5, 5))]))

    # the eigenvalues of the oscillator and the rotation
    eigs = model.eigvals(0)
    assert_allclose(np.sort(np.abs(eigs))[-2:], [0.95, 0.95])
    assert_allclose(model.spectral_radius(), [0.95, 0.95])
    assert model.is_stable()

    r = repr(model)
    assert 'VAR[2]' in r and 'arfit' in r and 'n_windows : 2' in r

    copied = model.copy()
    copied.ar[0][0, 0] = 10.
    assert model.ar[0][0, 0] != 10.

    with pytest.raises(IndexError, match='out of range'):
        model.get_coefs(2)


def test_time_varying_var_unstable():
    """Test the stability of an explosive model."""
    model = _model(np.array([[1.2, 0.], [0.3, 0.5]]))
    assert_allclose(model.spectral_radius(), [1.2, 1.2])
    assert not model.is_stable()
    # order one models are their own companion
    assert_array_equal(model.companion(0), model.ar[0])


def test_time_varying_var_predict(var2_coefs):
    """Test the one-step-ahead prediction."""
    model = _model(var2_coefs)
    rng = np.random.RandomState(0)
    data = rng.standard_normal((3, 5, 50))
    predicted = model.predict(data, 0)
    assert predicted.shape == data.shape
    assert_array_equal(predicted[:, :, :2], 0.)
    t = 17
    expected = var2_coefs[:, :5] @ data[1, :, t - 1] + \
        var2_coefs[:, 5:] @ data[1, :, t - 2]
    assert_allclose(predicted[1, :, t], expected)

    # two dimensional data is a single epoch
    assert_allclose(model.predict(data[2], 1), predicted[2])

    with pytest.raises(ValueError, match='2D or 3D'):
        model.predict(data[0, 0], 0)
    with pytest.raises(ValueError, match='signals'):
        model.predict(data[:, :3], 0)


def test_time_varying_var_errors(var2_coefs):
    """Test the validation of the model parameters."""
    with pytest.raises(ValueError, match='same length'):
        TimeVaryingVAR([var2_coefs], [], 2, 100., [0.], 1., 1., 'arfit', 5)
    with pytest.raises(ValueError, match='expected'):
        TimeVaryingVAR([var2_coefs], [np.eye(5)], 3, 100., [0.], 1., 1.,
                       'arfit', 5)
