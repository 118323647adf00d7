from collections import defaultdict

import numpy as np
from scipy import linalg

from mne.utils import logger, verbose

from ..utils import _check_order, _prepare_data, fill_doc
from .var import _check_algorithm, _fit_window


@verbose
@fill_doc
def select_order(data, max_order, min_order=1, algorithm='vieira-morf',
                 verbose=None):
    """Compute lag order selections based on information criterion.

    Selects a lag order based on each of the available information
    criteria, treating all epochs as one window.

    Parameters
    ----------
    %(data)s
    max_order : int
        The maximum order to check.
    min_order : int
        The minimum order to check, by default 1.
    %(algorithm)s
    %(verbose)s

    Returns
    -------
    selected_orders : dict
        The selected orders based on the following information criterion.
        * aic : Akaike
        * fpe : Final prediction error
        * hqic : Hannan-Quinn
        * bic : Bayesian a.k.a. Schwarz

        The selected order is then stored as the value.

    Notes
    -----
    Lattice algorithms produce the noise covariance of every intermediate
    order, so a single fit of order ``max_order`` is enough. Other
    algorithms are refitted for every order.
    """
    fitter = _check_algorithm(algorithm)
    min_order, max_order = _check_order([min_order, max_order],
                                        selects_order=True)
    # the sampling frequency does not affect the order selection
    data, *_ = _prepare_data(data, sfreq=1.)
    n_epochs, n_signals, n_times = data.shape

    max_estimable = n_epochs * (n_times - max_order) - n_signals * max_order
    if max_order >= n_times or max_estimable <= 0:
        raise ValueError(
            "max_order is too large for the number of observations and "
            "the number of equations. The largest model cannot be "
            "estimated.")

    # define dictionary of information criterions
    ics = defaultdict(list)
    if fitter.reflection:
        _, pe, _, _, _ = _fit_window(fitter, data, max_order, max_order,
                                     dict())
        sigmas = [pe[:, p * n_signals:(p + 1) * n_signals]
                  for p in range(min_order, max_order + 1)]
    else:
        sigmas = list()
        for p in range(min_order, max_order + 1):
            _, pe, _, _, info = _fit_window(fitter, data, p, p, dict())
            if 'dof' in info:
                # undo the degrees of freedom correction
                pe = _sigma_u_mle(info['dof'], n_epochs * (n_times - p), pe)
            sigmas.append(pe)

    for p, sigma_u in zip(range(min_order, max_order + 1), sigmas):
        info_criteria = _info_criteria(sigma_u, n_epochs * (n_times - p),
                                       n_signals, lags=p)
        for k, v in info_criteria.items():
            ics[k].append(v)

    selected_orders = dict(
        (k, int(np.argmin(v)) + min_order) for k, v in ics.items()
    )
    logger.info(f'Selected orders: {selected_orders}')
    return selected_orders


def _logdet_symm(m):
    """Return log(det(m)) asserting positive definiteness of m.

    Parameters
    ----------
    m : np.ndarray, shape (N, N)
        2d array that is positive-definite (and symmetric)

    Returns
    -------
    logdet : float
        The log-determinant of m.
    """
    c, _ = linalg.cho_factor(m, lower=True)
    return 2 * np.sum(np.log(c.diagonal()))


def _sigma_u_mle(df_resid, nobs, sigma_u):
    """(Biased) maximum likelihood estimate of noise process covariance."""
    return sigma_u * df_resid / nobs


def _info_criteria(sigma_u, nobs, neqs, lags):
    """Compute information criteria for lagorder selection.

    Parameters
    ----------
    sigma_u : np.ndarray, shape (n_channels, n_channels)
        Maximum likelihood estimate of the white noise covariance.
    nobs : int
        The number of predicted samples.
    neqs : int
        The number of channels.
    lags : int
        The model order.

    Returns
    -------
    result : dict
        The AIC, BIC, HQIC and FPE.
    """
    free_params = lags * neqs ** 2
    df_model = neqs * lags
    df_resid = nobs - df_model
    ld = _logdet_symm(sigma_u)

    # See Lütkepohl pp. 146-150
    aic = ld + (2.0 / nobs) * free_params
    bic = ld + (np.log(nobs) / nobs) * free_params
    hqic = ld + (2.0 * np.log(np.log(nobs)) / nobs) * free_params
    fpe = ((nobs + df_model) / df_resid) ** neqs * np.exp(ld)

    return {"aic": aic, "bic": bic, "hqic": hqic, "fpe": fpe}
