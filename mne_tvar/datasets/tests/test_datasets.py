import numpy as np
import pytest
from mne import EpochsArray
from numpy.testing import assert_allclose, assert_array_equal

from mne_tvar import make_var_data


def test_make_var_data(var2_coefs):
    """Test simulating a VAR process."""
    data = make_var_data(var2_coefs, n_epochs=3, n_times=200,
                         random_state=0)
    assert data.shape == (3, 5, 200)
    assert np.all(np.isfinite(data))

    # channel 1 is a delayed copy of channel 0 plus noise
    resid = data[:, 1, 2:] - 0.5 * data[:, 0, :-2]
    assert_allclose(resid.std(), 1., atol=0.15)

    # reproducible
    assert_array_equal(
        make_var_data(var2_coefs, n_epochs=3, n_times=200, random_state=0),
        data)


def test_make_var_data_noise_cov():
    """Test the covariance of the innovations."""
    noise_cov = np.array([[2., 0.5], [0.5, 1.]])
    data = make_var_data(np.zeros((2, 2)), noise_cov=noise_cov, n_epochs=4,
                         n_times=5000, random_state=0)
    cov = np.einsum('eit,ejt->ij', data, data) / (4 * 5000)
    assert_allclose(cov, noise_cov, atol=0.1)


def test_make_var_data_epochs(var2_coefs):
    """Test simulating mne.Epochs."""
    epochs = make_var_data(var2_coefs, n_epochs=2, n_times=100, sfreq=250.,
                           names=list('abcde'), random_state=0)
    assert isinstance(epochs, EpochsArray)
    assert epochs.ch_names == list('abcde')
    assert epochs.info['sfreq'] == 250.
    assert epochs.get_data(copy=True).shape == (2, 5, 100)

    epochs = make_var_data(var2_coefs, n_times=100, sfreq=250.)
    assert epochs.ch_names == ['0', '1', '2', '3', '4']


def test_make_var_data_errors(var2_coefs):
    """Test the validation of the process parameters."""
    with pytest.raises(ValueError, match='ar must be of shape'):
        make_var_data(var2_coefs[:, :7])
    with pytest.raises(ValueError, match='noise_cov must be of shape'):
        make_var_data(var2_coefs, noise_cov=np.eye(3))
