# Authors: The mne-tvar developers
#
# License: BSD (3-clause)

import numpy as np
from mne.utils import _check_option, _validate_type

########################################################################
# Connectivity measures of a VAR model
#
# Every measure maps a _SpectralBundle to a real array of shape
# (n_nodes, n_nodes, n_freqs), indexed [sink, source, freq].


def _to_output(arr):
    return np.ascontiguousarray(arr.transpose(1, 2, 0))


def _auto_spectra(mats):
    """The products ``M_ii M_jj`` of the real diagonals of ``mats``."""
    diag = np.real(np.diagonal(mats, axis1=1, axis2=2))
    return diag[:, :, np.newaxis] * diag[:, np.newaxis, :]


def _spectral_density(bundle):
    """Magnitude of the spectral density matrix."""
    return _to_output(np.abs(bundle.S))


def _coherence(bundle):
    """Magnitude squared coherence."""
    S = bundle.S
    return _to_output(np.abs(S) ** 2 / _auto_spectra(S))


def _imaginary_coherence(bundle):
    """Imaginary part of the coherency."""
    S = bundle.S
    return _to_output(np.imag(S) / np.sqrt(_auto_spectra(S)))


def _partial_coherence(bundle):
    """Partial coherence, from the inverse spectral matrix."""
    G = bundle.inv_s
    return _to_output(np.abs(G) ** 2 / _auto_spectra(G))


def _dtf(bundle):
    """Directed transfer function, normalized by the inflows per frequency.

    ``DTF_ij(f) = |H_ij(f)|^2 / sum_k |H_ik(f)|^2``
    """
    h2 = np.abs(bundle.H) ** 2
    return _to_output(h2 / h2.sum(axis=2, keepdims=True))


def _ffdtf(bundle):
    """Full-frequency DTF, normalized by the inflows over all frequencies."""
    h2 = np.abs(bundle.H) ** 2
    return _to_output(h2 / h2.sum(axis=(0, 2))[np.newaxis, :, np.newaxis])


def _ddtf(bundle):
    """Direct DTF, the product of full-frequency DTF and partial coherence."""
    return _ffdtf(bundle) * _partial_coherence(bundle)


def _pdc(bundle):
    """Partial directed coherence, normalized by the outflows.

    ``PDC_ij(f) = |A_ij(f)|^2 / sum_k |A_kj(f)|^2``
    """
    a2 = np.abs(bundle.A) ** 2
    return _to_output(a2 / a2.sum(axis=1, keepdims=True))


def _gpdc(bundle):
    """Generalized PDC, with each sink weighted by its noise variance."""
    weights = 1. / np.real(np.diag(bundle.pe))
    a2 = np.abs(bundle.A) ** 2 * weights[np.newaxis, :, np.newaxis]
    return _to_output(a2 / a2.sum(axis=1, keepdims=True))


# map names to measures
_CON_METHOD_MAP = {
    'S': _spectral_density,
    'Coh': _coherence,
    'iCoh': _imaginary_coherence,
    'pCoh': _partial_coherence,
    'DTF': _dtf,
    'ffDTF': _ffdtf,
    'dDTF': _ddtf,
    'PDC': _pdc,
    'GPDC': _gpdc,
}


def _check_methods(method):
    """Validate the requested measures and remove duplicates, in order."""
    if isinstance(method, str):
        method = [method]
    _validate_type(method, (list, tuple), 'method')
    if len(method) == 0:
        raise ValueError('At least one connectivity method is required.')
    methods = list()
    for this_method in method:
        _check_option('method', this_method, list(_CON_METHOD_MAP))
        if this_method not in methods:
            methods.append(this_method)
    return methods


def _compute_measures(bundle, methods):
    """Compute several measures sharing one spectral bundle."""
    return {method: _CON_METHOD_MAP[method](bundle) for method in methods}
