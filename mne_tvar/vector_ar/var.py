from collections import namedtuple
from functools import partial
import time

import numpy as np
from numpy.linalg import LinAlgError
from tqdm import tqdm

from mne.utils import _check_option, logger, verbose, warn

from ..base import TimeVaryingVAR
from ..utils import (
    _check_order,
    _prepare_data,
    compute_window_starts,
    fill_doc,
)
from .arfit import _arfit
from .lattice import _LATTICE_MODES, _covm, _mvar, _pad_trials

# A fitting algorithm and its capabilities.
#
# ``func`` returns ``(ar, pe, rc, ci, info)``. Padded fitters receive
# ``(x, mask, order, **params)`` as produced by ``_pad_trials``, the others
# the window data and the order range ``(data, min_order, max_order,
# **params)``. ``sign`` is -1 for fitters that return the coefficients of
# the prediction error filter ``x(t) + sum_i B_i x(t - i) = e(t)``.
_Fitter = namedtuple('_Fitter', [
    'name', 'func', 'multi_trial', 'reflection', 'confidence',
    'selects_order', 'padded', 'sign', 'params'])


@verbose
@fill_doc
def fit_mvar(data, order, algorithm='vieira-morf', sfreq=None, win_len=None,
             win_step=None, epoch_tlims=None, win_start_idx=None,
             prct_win_to_sample=100, names=None, tmin=None, condition=None,
             algorithm_params=None, timer=False, progress_bar=False,
             callback=None, random_state=None, verbose=None):
    """Fit a time-varying vector autoregressive (VAR) model.

    A VAR model is fitted to the data of every (sliding) window, using all
    epochs as independent realizations of the same process.

    Parameters
    ----------
    %(data)s
    %(order)s
    %(algorithm)s
    %(sfreq)s
    %(windows)s
    %(names)s
    tmin : float | None
        The time of the first sample of each epoch relative to the event, in
        seconds. Used for the event-related window times. Defaults to 0.
    condition : str | None
        A label of the experimental condition, stored with the model.
    algorithm_params : dict | None
        Extra parameters of the algorithm: ``l2_reg`` (ridge penalty) for
        ``'least-squares'``; ``ccoeff`` (confidence interval coverage) and
        ``selector`` (``'sbc'`` or ``'fpe'``) for ``'arfit'``.
    timer : bool
        Whether to record the duration of every window fit in
        ``time_elapsed``. Default False.
    %(progress_bar)s
    %(callback)s
    %(random_state)s
    %(verbose)s

    Returns
    -------
    model : TimeVaryingVAR
        The fitted model, with one entry per window. Windows for which the
        fit failed numerically hold None.

    See Also
    --------
    mne_tvar.mvar_connectivity
    mne_tvar.select_order

    Notes
    -----
    The model of every window is

    .. math::
        x(t) = \\sum_{i=1}^{p} A_i x(t-i) + e(t)

    whatever the algorithm. Epochs are never concatenated directly: lagged
    products only combine samples from the same epoch.

    A window whose data is degenerate (e.g. a singular covariance) emits a
    ``RuntimeWarning`` and is left empty, the other windows are still
    fitted.
    """
    fitter = _check_algorithm(algorithm)
    algorithm_params = _check_algorithm_params(fitter, algorithm_params)
    min_order, max_order = _check_order(order, fitter.selects_order)
    data, sfreq, names, tmin, condition = _prepare_data(
        data, sfreq, names, tmin, condition)
    n_epochs, n_nodes, n_times = data.shape

    if epoch_tlims is None:
        epoch_tlims = (0., n_times / sfreq)
    if win_len is None:
        win_len = epoch_tlims[1] - epoch_tlims[0]
    if win_step is None:
        win_step = win_len
    win_samples = int(round(win_len * sfreq))

    starts = compute_window_starts(
        sfreq, epoch_tlims, win_len, win_step, win_start_idx=win_start_idx,
        prct_win_to_sample=prct_win_to_sample, random_state=random_state)
    n_windows = len(starts)
    if n_windows == 0:
        warn('There are no windows to fit, returning an empty model.')
        return TimeVaryingVAR(
            [], [], max_order, sfreq, [], win_len, win_step, fitter.name,
            n_nodes, names=names, tmin=tmin, condition=condition,
            time_elapsed=np.zeros(0) if timer else None)

    if np.any(starts < 0) or np.any(starts + win_samples > n_times):
        raise ValueError(
            f'Windows of {win_samples} samples starting at {starts.min()} to '
            f'{starts.max()} do not fit in epochs of {n_times} samples. '
            'Check epoch_tlims, win_len and win_start_idx.')
    if max_order >= win_samples:
        raise ValueError(f'The model order ({max_order}) must be smaller '
                         f'than the window length ({win_samples} samples).')

    logger.info(f'Fitting VAR[{max_order}] models with {fitter.name} to '
                f'{n_windows} windows of {win_samples} samples '
                f'({n_epochs} epochs, {n_nodes} signals)')

    ar, pe, rc, ci, info = ([None] * n_windows for _ in range(5))
    time_elapsed = np.full(n_windows, np.nan) if timer else None
    cancelled = False
    for idx in tqdm(range(n_windows), disable=not progress_bar):
        start = starts[idx]
        tic = time.perf_counter()
        try:
            ar[idx], pe[idx], rc[idx], ci[idx], info[idx] = _fit_window(
                fitter, data[:, :, start:start + win_samples],
                min_order, max_order, algorithm_params)
        except LinAlgError as exp:
            warn(f'Could not fit window {idx} (starting at sample {start}): '
                 f'{exp}. The window is left empty.')
        if timer:
            time_elapsed[idx] = time.perf_counter() - tic

        if callback is not None and callback(idx + 1, n_windows):
            logger.info(f'Fitting cancelled after {idx + 1} of {n_windows} '
                        'windows')
            cancelled = True
            break

    model = TimeVaryingVAR(
        ar, pe, max_order, sfreq, starts / sfreq, win_len, win_step,
        fitter.name, n_nodes, names=names, rc=rc, ci=ci, info=info,
        tmin=tmin, condition=condition, time_elapsed=time_elapsed,
        cancelled=cancelled)
    logger.info(f'[done, {model.n_windows - len(model.missing)} of '
                f'{model.n_windows} windows fitted]')
    return model


def _check_algorithm(algorithm):
    """Look up a fitting algorithm by name or mode code."""
    key = str(algorithm).lower()
    if key not in _MVAR_FITTERS:
        raise ValueError(f'Unknown algorithm "{algorithm}", must be one of '
                         f'{", ".join(_MVAR_FITTERS)}.')
    return _MVAR_FITTERS[key]


def _check_algorithm_params(fitter, algorithm_params):
    if algorithm_params is None:
        return dict()
    unknown = set(algorithm_params) - set(fitter.params)
    if unknown:
        raise ValueError(
            f'Unknown parameters {sorted(unknown)} for algorithm '
            f'"{fitter.name}", valid parameters are {list(fitter.params)}.')
    if 'selector' in algorithm_params:
        _check_option('selector', algorithm_params['selector'], ('sbc', 'fpe'))
    if 'ccoeff' in algorithm_params:
        ccoeff = algorithm_params['ccoeff']
        if not 0 < ccoeff < 1:
            raise ValueError(f'ccoeff must be between 0 and 1 (exclusive), '
                             f'got {ccoeff}.')
    if 'l2_reg' in algorithm_params:
        l2_reg = algorithm_params['l2_reg']
        if not l2_reg >= 0:
            raise ValueError(f'l2_reg must be non-negative, got {l2_reg}.')
    return dict(algorithm_params)


def _fit_window(fitter, data, min_order, max_order, params):
    """Fit one window and return its model in the package convention.

    Raises
    ------
    LinAlgError
        If the window data is degenerate or the estimation fails.
    """
    if fitter.padded:
        x, mask = _pad_trials(data, max_order)
        _check_noise(x, mask)
        ar, pe, rc, ci, info = fitter.func(x, mask, max_order, **params)
    else:
        if not np.all(np.isfinite(data)):
            raise LinAlgError('The window contains non-finite samples.')
        x = data.transpose(0, 2, 1).reshape(-1, data.shape[1])
        _check_noise(x, np.ones(len(x), dtype=bool))
        ar, pe, rc, ci, info = fitter.func(data, min_order, max_order,
                                           **params)

    ar = fitter.sign * ar
    if rc is not None:
        rc = fitter.sign * rc
    return ar, pe, rc, ci, info


def _check_noise(x, mask):
    """Check that the zero-lag covariance of a window is well conditioned."""
    c0, n_valid = _covm(x, x, mask, mask)
    if n_valid == 0:
        raise LinAlgError('The window has no valid samples.')
    eigs = np.linalg.eigvalsh(c0 / n_valid)
    tol = len(eigs) * np.finfo(eigs.dtype).eps * eigs[-1]
    if eigs[-1] <= 0 or eigs[0] <= tol:
        raise LinAlgError(
            f'The covariance of the window is singular (eigenvalues '
            f'{eigs[0]:.3g} to {eigs[-1]:.3g}), the signals are linearly '
            'dependent.')


def _fit_lattice(x, mask, order, mode):
    ar, rc, pe = _mvar(x, mask, order, mode=mode)
    return ar, pe, rc, None, dict()


def _fit_arfit(data, min_order, max_order, ccoeff=0.95, selector='sbc'):
    ar, pe, ci, info = _arfit(data, min_order, max_order, ccoeff=ccoeff,
                              selector=selector)
    return ar, pe, None, ci, info


def _estimate_pef(x, mask, order, l2_reg=0.):
    """Estimate a prediction error filter with the covariance method.

    The filter ``x(t) + sum_i B_i x(t - i) = e(t)`` minimizing the squared
    error over all samples that have a full (valid) history is obtained
    from the normal equations, optionally with a ridge penalty.

    Parameters
    ----------
    x : np.ndarray, shape (n_samples, n_signals)
        The (padded) multivariate series.
    mask : np.ndarray of bool, shape (n_samples,)
        The validity of each sample.
    order : int
        The filter order.
    l2_reg : float
        The ridge penalty, by default 0.

    Returns
    -------
    b : np.ndarray, shape (n_signals, n_signals * order)
        The filter coefficients ``[B_1, ..., B_p]``.
    pe : np.ndarray, shape (n_signals, n_signals)
        The prediction error covariance, normalized by the number of
        predicted samples.
    """
    n_samples, n_signals = x.shape
    z = _get_var_predictor_matrix(x, order)
    y = x[order:]
    # rows whose sample and entire history are valid
    rows = np.lib.stride_tricks.sliding_window_view(
        mask, order + 1).all(axis=1)
    z, y = z[rows], y[rows]
    n_eq = len(y)
    if n_eq <= n_signals * order:
        raise LinAlgError(f'Not enough samples ({n_eq} equations) to fit an '
                          f'order {order} model to {n_signals} signals.')

    r_zz = z.T @ z + l2_reg * np.eye(n_signals * order)
    r_zy = z.T @ y
    b = -np.linalg.solve(r_zz, r_zy).T

    resid = y + z @ b.T
    pe = resid.T @ resid / n_eq
    if not np.all(np.isfinite(b)) or not np.all(np.isfinite(pe)):
        raise LinAlgError('The estimated coefficients are not finite.')
    return b, pe, None, None, dict()


def _get_var_predictor_matrix(y, lags):
    """Make predictor matrix for VAR(p) process, Z.

    Parameters
    ----------
    y : np.ndarray (n_samples, n_channels)
        The passed in data array.
    lags : int
        The number of lags.

    Returns
    -------
    Z : np.ndarray (n_samples - lags, n_channels * lags)
        Z is a (T x Kp) matrix, with K the number of channels,
        p the lag order, and T the number of samples.
        Z_t = [y_{t-1} y_{t-2} ... y_{t-p}] (Kp x 1)

    References
    ----------
    Ref: Lütkepohl p.70 (transposed)
    """
    nobs = len(y)
    # Ravel C order, need to put in descending order
    Z = np.array([y[t - lags: t][::-1].ravel() for t in range(lags, nobs)])
    return Z.reshape(nobs - lags, -1)


def _lattice_fitter(mode):
    return _Fitter(
        name=str(mode), func=partial(_fit_lattice, mode=mode),
        multi_trial=True, reflection=True, confidence=False,
        selects_order=False, padded=True, sign=1, params=())


_MVAR_FITTERS = {
    'vieira-morf': _lattice_fitter(2)._replace(name='vieira-morf'),
    'arfit': _Fitter(
        name='arfit', func=_fit_arfit, multi_trial=True, reflection=False,
        confidence=True, selects_order=True, padded=False, sign=1,
        params=('ccoeff', 'selector')),
    'least-squares': _Fitter(
        name='least-squares', func=_estimate_pef, multi_trial=True,
        reflection=False, confidence=False, selects_order=False,
        padded=True, sign=-1, params=('l2_reg',)),
}
_MVAR_FITTERS.update({str(mode): _lattice_fitter(mode)
                      for mode in sorted(_LATTICE_MODES)})
