import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from mne_tvar import (
    fit_mvar, make_var_data, mvar_connectivity, read_connectivity
)

SFREQ = 100.


@pytest.fixture(scope='module')
def var2_epochs(var2_coefs):
    """Two epochs of ten seconds of the five channel VAR(2) process."""
    return make_var_data(var2_coefs, n_epochs=2, n_times=1000, burn_in=500,
                         sfreq=SFREQ, names=['O1', 'P3', 'C3', 'Fz', 'F4'],
                         random_state=1)


def test_time_varying_connectivity(var2_coefs, var2_epochs, tmp_path):
    """Test the recovery of a known process and its coupling spectrum.

    Each window holds 1000 samples, so single coefficients scatter by up
    to 0.1 around the truth. The bound on the mean error is tighter.
    """
    model = fit_mvar(var2_epochs, 2, win_len=5., win_step=5.)
    assert model.n_windows == 2
    assert model.missing == []
    assert_allclose(model.win_center_times, [2.5, 7.5])
    mean_ar = np.mean(model.ar, axis=0)
    assert np.mean(np.abs(mean_ar - var2_coefs)) < 0.05
    assert_allclose(mean_ar, var2_coefs, atol=0.1)

    # channel 0 oscillates at 12.5 Hz and drives channel 1
    freqs = [12.5, 40.]
    conn = mvar_connectivity(model, ['Coh', 'DTF', 'PDC', 'Coh'],
                             freqs=freqs)
    assert conn.methods == ['Coh', 'DTF', 'PDC']
    assert conn.names == ['O1', 'P3', 'C3', 'Fz', 'F4']
    coh = conn.get_data('Coh')
    assert coh.shape == (5, 5, 2, 2)
    assert np.all(coh[1, 0, 0] > coh[1, 0, 1] + 0.5)
    assert np.all(coh[1, 0, 0] > 0.8)

    # the coupling is directed
    dtf = conn.get_data('DTF')
    assert np.all(dtf[1, 0] > 3 * dtf[0, 1])
    pdc = conn.get_data('PDC')
    assert np.all(pdc[1, 0] > 3 * pdc[0, 1])

    conn.save(tmp_path / 'conn.nc')
    new_conn = read_connectivity(tmp_path / 'conn.nc')
    assert_array_equal(new_conn.get_data('PDC'), pdc)
    assert new_conn.attrs['condition'] == '1'


@pytest.mark.parametrize('algorithm', ['vieira-morf', 'arfit', 5])
def test_missing_window_connectivity(var2_epochs, algorithm):
    """Test that a degenerate window stays empty through the pipeline."""
    data = var2_epochs.get_data(copy=True)
    data[:, :, 250:500] = 0.
    with pytest.warns(RuntimeWarning, match='Could not fit window 1'):
        model = fit_mvar(data, 2, algorithm=algorithm, sfreq=SFREQ,
                         win_len=2.5, win_step=2.5)
    assert model.n_windows == 4
    assert model.missing == [1]

    conn = mvar_connectivity(model, ['DTF', 'GPDC', 'pCoh'])
    assert conn.missing == [1]
    for method in conn.methods:
        data = conn.get_data(method)
        assert data.shape == (5, 5, 50, 4)
        assert_array_equal(data[..., 1], 0.)
        assert np.all(np.isfinite(data))
        assert np.all(data[..., [0, 2, 3]].max(axis=(0, 1, 2)) > 0)
