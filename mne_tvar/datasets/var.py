# Authors: The mne-tvar developers
#
# License: BSD (3-clause)

import numpy as np
from mne import EpochsArray, create_info
from mne.utils import check_random_state

from ..utils import fill_doc


@fill_doc
def make_var_data(ar, noise_cov=None, n_epochs=1, n_times=1000, burn_in=None,
                  sfreq=None, names=None, random_state=None):
    """Simulate epochs of a stationary VAR process.

    Parameters
    ----------
    ar : array-like, shape (n_signals, n_signals * order)
        The coefficients ``[A_1, ..., A_p]`` of the process
        ``x(t) = sum_i A_i x(t - i) + e(t)``.
    noise_cov : array-like, shape (n_signals, n_signals) | None
        The covariance of the Gaussian innovations ``e(t)``. Defaults to
        the identity.
    n_epochs : int (default 1)
        The number of independent realizations.
    n_times : int (default 1000)
        The number of samples per epoch.
    burn_in : int | None
        The number of initial samples to discard, by default ``10 * order``.
    sfreq : float | None
        If given, the data is returned as :class:`mne.EpochsArray` with this
        sampling frequency.
    %(names)s
    %(random_state)s

    Returns
    -------
    data : np.ndarray, shape (n_epochs, n_signals, n_times) | mne.EpochsArray
        The simulated data.
    """
    ar = np.atleast_2d(np.asarray(ar, dtype=float))
    n_signals = ar.shape[0]
    order = ar.shape[1] // n_signals
    if order < 1 or ar.shape[1] != n_signals * order:
        raise ValueError('ar must be of shape (n_signals, n_signals * order), '
                         f'got {ar.shape}.')
    if noise_cov is None:
        noise_cov = np.eye(n_signals)
    noise_cov = np.asarray(noise_cov, dtype=float)
    if noise_cov.shape != (n_signals, n_signals):
        raise ValueError(f'noise_cov must be of shape {(n_signals, n_signals)}'
                         f', got {noise_cov.shape}.')
    if burn_in is None:
        burn_in = 10 * order
    rng = check_random_state(random_state)

    coefs = ar.reshape(n_signals, order, n_signals).transpose(1, 0, 2)
    chol = np.linalg.cholesky(noise_cov)
    n_total = n_times + burn_in
    data = np.zeros((n_epochs, n_signals, n_times))
    for idx in range(n_epochs):
        x = rng.standard_normal((n_total, n_signals)) @ chol.T
        for t in range(order, n_total):
            for lag in range(1, order + 1):
                x[t] += coefs[lag - 1] @ x[t - lag]
        data[idx] = x[burn_in:].T

    if sfreq is None:
        return data
    if names is None:
        names = list(np.arange(n_signals).astype(str))
    info = create_info(list(names), sfreq, ch_types='eeg')
    return EpochsArray(data, info, verbose=False)
