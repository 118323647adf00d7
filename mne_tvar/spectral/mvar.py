# Authors: The mne-tvar developers
#
# License: BSD (3-clause)

import numpy as np
from numpy.linalg import LinAlgError
from tqdm import tqdm
from mne.utils import _validate_type, logger, sizeof_fmt, verbose, warn

from ..base import MVARConnectivity, TimeVaryingVAR
from ..utils import fill_doc
from .measures import _check_methods, _compute_measures
from .transfer import _mvar_transfer


def estimate_memory(n_methods, n_windows, n_freqs, n_nodes):
    """Estimate the memory needed to store connectivity results.

    Parameters
    ----------
    n_methods : int
        The number of connectivity measures.
    n_windows : int
        The number of windows.
    n_freqs : int
        The number of frequencies.
    n_nodes : int
        The number of nodes.

    Returns
    -------
    n_bytes : int
        The size of the single precision connectivity tensors in bytes.
    """
    itemsize = np.dtype(np.float32).itemsize
    return int(itemsize * n_methods * n_windows * n_freqs * n_nodes ** 2)


@verbose
@fill_doc
def mvar_connectivity(model, method, freqs=None, max_memory=None,
                      progress_bar=False, callback=None, verbose=None):
    """Compute spectral connectivity from a time-varying VAR model.

    Parameters
    ----------
    model : TimeVaryingVAR
        The fitted model, see :func:`mne_tvar.fit_mvar`.
    %(method)s
    %(freqs)s
    max_memory : int | None
        The largest amount of memory (in bytes) the results may take. If the
        estimated size exceeds it, a ``MemoryError`` is raised before any
        computation.
    %(progress_bar)s
    %(callback)s
    %(verbose)s

    Returns
    -------
    conn : MVARConnectivity
        The connectivity of every measure, of shape
        ``(n_nodes, n_nodes, n_freqs, n_windows)``. Windows without model
        estimate hold zeros and are listed in ``conn.missing``.

    See Also
    --------
    mne_tvar.fit_mvar
    mne_tvar.MVARConnectivity

    Notes
    -----
    For every window the transfer function of the model

    .. math::
        H(f) = \\left(I - \\sum_{k=1}^{p} A_k e^{-i 2 \\pi f k / f_s}
        \\right)^{-1}

    and the spectral matrix :math:`S(f) = H(f) \\Sigma H(f)^H` are computed
    once and shared by all measures. Entry ``(i, j)`` describes the
    coupling from ``j`` to ``i``.
    """
    _validate_type(model, TimeVaryingVAR, 'model')
    methods = _check_methods(method)
    if freqs is None:
        freqs = np.arange(1, np.floor(model.sfreq / 2.) + 1)
    freqs = np.atleast_1d(np.asarray(freqs, dtype=float))
    if freqs.ndim != 1:
        raise ValueError(f'freqs must be one-dimensional, got shape '
                         f'{freqs.shape}.')

    n_nodes, n_windows, n_freqs = model.n_nodes, model.n_windows, len(freqs)
    shape = (n_nodes, n_nodes, n_freqs, n_windows)
    n_bytes = estimate_memory(len(methods), n_windows, n_freqs, n_nodes)
    logger.info(f'Computing {", ".join(methods)} for {n_windows} windows '
                f'and {n_freqs} frequencies (~{sizeof_fmt(n_bytes)})')
    if max_memory is not None and n_bytes > max_memory:
        raise MemoryError(
            f'The connectivity results need ~{sizeof_fmt(n_bytes)}, more than '
            f'the allowed {sizeof_fmt(max_memory)}. Reduce the number of '
            'windows, frequencies or methods.')

    con = None
    valid = np.zeros(n_windows, dtype=bool)
    cancelled = model.cancelled
    for idx in tqdm(range(n_windows), disable=not progress_bar):
        if model.ar[idx] is not None:
            try:
                bundle = _mvar_transfer(model.ar[idx],
                                        model.get_noise_cov(idx), freqs,
                                        model.sfreq)
                results = _compute_measures(bundle, methods)
            except LinAlgError as exp:
                warn(f'Could not compute connectivity of window {idx}: '
                     f'{exp}. The window is left empty.')
            else:
                if con is None:
                    con = _allocate(methods, shape, n_bytes)
                for this_method in methods:
                    con[this_method][..., idx] = results[this_method]
                valid[idx] = True

        if callback is not None and callback(idx + 1, n_windows):
            logger.info(f'Connectivity cancelled after {idx + 1} of '
                        f'{n_windows} windows')
            cancelled = True
            break

    if con is None:
        con = _allocate(methods, shape, n_bytes)

    conn = MVARConnectivity(
        con, freqs=freqs, times=model.win_center_times,
        er_times=model.er_win_center_times, names=model.names, valid=valid,
        cancelled=cancelled, sfreq=model.sfreq, order=model.order,
        algorithm=model.algorithm, condition=model.condition)
    logger.info('[Connectivity computation done]')
    return conn


def _allocate(methods, shape, n_bytes):
    try:
        return {this_method: np.zeros(shape, dtype=np.float32)
                for this_method in methods}
    except MemoryError as exp:
        raise MemoryError(f'Could not allocate ~{sizeof_fmt(n_bytes)} for '
                          'the connectivity results.') from exp
