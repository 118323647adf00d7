import numpy as np
import pytest
from numpy.testing import assert_array_equal

from mne_tvar import MVARConnectivity, read_connectivity


def _make_conn(cancelled=False, condition=None):
    rng = np.random.RandomState(0)
    data = {method: rng.rand(3, 3, 4, 5).astype(np.float32)
            for method in ('Coh', 'PDC')}
    data['PDC'][..., 2] = 0.
    valid = [True, True, False, True, True]
    return MVARConnectivity(
        data, freqs=[2., 4., 6., 8.], times=np.arange(5) + 0.5,
        er_times=np.arange(5) - 0.5, names=['C3', 'Cz', 'C4'], valid=valid,
        cancelled=cancelled, sfreq=250., order=3, algorithm='vieira-morf',
        condition=condition)


def test_mvar_connectivity_container():
    """Test the connectivity container."""
    conn = _make_conn()
    assert conn.methods == ['Coh', 'PDC']
    assert conn.freqs == [2., 4., 6., 8.]
    assert conn.times == [0.5, 1.5, 2.5, 3.5, 4.5]
    assert conn.er_times == [-0.5, 0.5, 1.5, 2.5, 3.5]
    assert conn.names == ['C3', 'Cz', 'C4']
    assert conn.n_nodes == 3
    assert conn.n_windows == 5
    assert conn.missing == [2]
    assert not conn.cancelled
    assert conn.attrs['condition'] == 'n/a'
    assert conn.xarray['Coh'].dims == ('sink', 'source', 'freqs', 'times')
    assert 'Coh' in repr(conn) and 'n_windows : 5' in repr(conn)

    copied = conn.copy()
    copied.get_data('Coh')[0, 0, 0, 0] = 10.
    assert conn.get_data('Coh')[0, 0, 0, 0] != 10.


def test_mvar_connectivity_container_errors():
    """Test the validation of the connectivity container."""
    data = dict(Coh=np.zeros((3, 3, 4, 5)), PDC=np.zeros((3, 3, 4, 4)))
    with pytest.raises(ValueError, match='same shape'):
        MVARConnectivity(data, freqs=np.arange(4), times=np.arange(5))
    with pytest.raises(ValueError, match='expected'):
        MVARConnectivity(dict(Coh=np.zeros((3, 3, 4, 5))),
                         freqs=np.arange(3), times=np.arange(5))
    with pytest.raises(ValueError, match='number of names'):
        MVARConnectivity(dict(Coh=np.zeros((3, 3, 4, 5))),
                         freqs=np.arange(4), times=np.arange(5),
                         names=['a', 'b'])
    with pytest.raises(TypeError, match='data'):
        MVARConnectivity(np.zeros((3, 3, 4, 5)), freqs=np.arange(4),
                         times=np.arange(5))


@pytest.mark.parametrize('cancelled', [False, True])
@pytest.mark.parametrize('condition', [None, 'task'])
def test_mvar_connectivity_io(tmp_path, cancelled, condition):
    """Test writing and reading connectivity data."""
    conn = _make_conn(cancelled=cancelled, condition=condition)
    fname = tmp_path / 'conn.nc'
    conn.save(fname)
    assert 'data_structure' not in conn.attrs

    new_conn = read_connectivity(fname)
    assert isinstance(new_conn, MVARConnectivity)
    assert new_conn.methods == conn.methods
    for method in conn.methods:
        assert_array_equal(new_conn.get_data(method), conn.get_data(method))
    assert new_conn.freqs == conn.freqs
    assert new_conn.times == conn.times
    assert new_conn.er_times == conn.er_times
    assert new_conn.names == conn.names
    assert new_conn.missing == conn.missing
    assert new_conn.cancelled == cancelled
    assert new_conn.attrs['sfreq'] == 250.
    assert new_conn.attrs['order'] == 3
    assert new_conn.attrs['algorithm'] == 'vieira-morf'
    assert new_conn.attrs['condition'] == (
        'n/a' if condition is None else condition)
