# Authors: The mne-tvar developers
#
# License: BSD (3-clause)

import numpy as np
from numpy.linalg import LinAlgError
from mne.utils import logger


class _SpectralBundle:
    """The frequency domain representation of one VAR model.

    Attributes
    ----------
    A : np.ndarray, shape (n_freqs, n_nodes, n_nodes)
        The Fourier transformed coefficients ``I - sum_k A_k z^-k``.
    H : np.ndarray, shape (n_freqs, n_nodes, n_nodes)
        The transfer function, the inverse of ``A``.
    S : np.ndarray, shape (n_freqs, n_nodes, n_nodes)
        The spectral density matrix ``H PE H^H``.
    pe : np.ndarray, shape (n_nodes, n_nodes)
        The noise covariance.
    freqs : np.ndarray, shape (n_freqs,)
        The frequencies.
    """

    def __init__(self, A, H, S, pe, freqs):
        self.A = A
        self.H = H
        self.S = S
        self.pe = pe
        self.freqs = freqs
        self._inv_s = None

    @property
    def inv_s(self):
        """The inverse spectral density matrix, computed on first use."""
        if self._inv_s is None:
            self._inv_s = _safe_inverse(self.S)
        return self._inv_s


def _mvar_transfer(ar, pe, freqs, sfreq):
    """Compute the transfer function and spectrum of a VAR model.

    Parameters
    ----------
    ar : np.ndarray, shape (n_nodes, n_nodes * order)
        The coefficients ``[A_1, ..., A_p]``.
    pe : np.ndarray, shape (n_nodes, n_nodes * k)
        The noise covariance, as its last ``n_nodes`` columns.
    freqs : array-like of float, shape (n_freqs,)
        The frequencies (Hz).
    sfreq : float
        The sampling frequency (Hz).

    Returns
    -------
    bundle : _SpectralBundle
        The transfer function and spectral matrices.

    Raises
    ------
    LinAlgError
        If the coefficients are degenerate (e.g. not finite).
    """
    n_nodes = ar.shape[0]
    order = ar.shape[1] // n_nodes
    freqs = np.asarray(freqs, dtype=float)
    pe = pe[:, -n_nodes:]
    if not np.all(np.isfinite(ar)) or not np.all(np.isfinite(pe)):
        raise LinAlgError('The model parameters are not finite.')

    coefs = ar.reshape(n_nodes, order, n_nodes).transpose(1, 0, 2)
    lags = np.arange(1, order + 1)
    z = np.exp(-2j * np.pi * np.outer(freqs, lags) / sfreq)
    A = np.eye(n_nodes)[np.newaxis] - np.einsum('fk,kij->fij', z, coefs)
    H = _safe_inverse(A)
    S = H @ pe @ H.conj().transpose(0, 2, 1)
    return _SpectralBundle(A, H, S, pe, freqs)


def _safe_inverse(mats):
    """Invert a stack of matrices, falling back to the pseudo-inverse.

    Matrices whose condition number exceeds ``1 / eps`` are inverted with
    :func:`numpy.linalg.pinv`.
    """
    s = np.linalg.svd(mats, compute_uv=False)
    ill = s[:, -1] <= s[:, 0] * np.finfo(float).eps
    out = np.empty_like(mats)
    if np.any(~ill):
        eye = np.broadcast_to(np.eye(mats.shape[1], dtype=mats.dtype),
                              (int(np.sum(~ill)),) + mats.shape[1:])
        out[~ill] = np.linalg.solve(mats[~ill], eye)
    if np.any(ill):
        logger.debug(f'Using the pseudo-inverse for {int(ill.sum())} '
                     'ill-conditioned frequency bins')
        out[ill] = np.linalg.pinv(mats[ill])
    return out
