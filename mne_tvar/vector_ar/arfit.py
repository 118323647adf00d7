# Authors: The mne-tvar developers
#
# License: BSD (3-clause)

import numpy as np
from numpy.linalg import LinAlgError
from scipy import linalg, stats


def _arfit(data, min_order, max_order, ccoeff=0.95, selector='sbc'):
    """Stepwise least squares estimation of a zero-mean VAR model.

    This follows the ARfit algorithm of Schneider & Neumaier (2001): the
    regression problem of the largest order is QR-factorized once, and the
    models of all smaller orders are read off the triangular factor.

    Parameters
    ----------
    data : np.ndarray, shape (n_epochs, n_signals, n_times)
        The windowed data. Epochs are independent realizations of the same
        process.
    min_order, max_order : int
        The range of candidate orders.
    ccoeff : float
        The coverage of the confidence intervals, by default 0.95.
    selector : 'sbc' | 'fpe'
        The order selection criterion.

    Returns
    -------
    ar : np.ndarray, shape (n_signals, n_signals * max_order)
        The coefficients of the selected order, zero-padded to
        ``max_order``.
    pe : np.ndarray, shape (n_signals, n_signals)
        The noise covariance matrix.
    ci : np.ndarray, shape (n_signals, n_signals * max_order)
        The half-width of the confidence interval of each coefficient
        (zero for padded coefficients).
    info : dict
        The selected order, the degrees of freedom and the ``sbc`` and
        ``fpe`` values of every candidate order.
    """
    if selector not in ('sbc', 'fpe'):
        raise ValueError(f'selector must be "sbc" or "fpe", got {selector}.')
    v = np.asarray(data, dtype=float).transpose(0, 2, 1)
    n_epochs, n_times, n_signals = v.shape
    n_eq = n_epochs * (n_times - max_order)
    n_par_max = n_signals * max_order
    if n_eq <= n_par_max:
        raise LinAlgError(f'Not enough samples ({n_eq} equations) to fit '
                          f'an order {max_order} model to {n_signals} '
                          'signals.')

    R = _arqr(v, max_order)
    sbc, fpe, _, n_par = _arord(R, n_signals, n_eq, min_order, max_order)

    # order with the smallest criterion value
    crit = sbc if selector == 'sbc' else fpe
    i_opt = int(np.argmin(crit))
    order = min_order + i_opt
    n_par_opt = n_par[i_opt]

    R11 = R[:n_par_opt, :n_par_opt]
    R12 = R[:n_par_opt, n_par_max:n_par_max + n_signals]
    R22 = R[n_par_opt:n_par_max + n_signals, n_par_max:n_par_max + n_signals]

    ar = np.zeros((n_signals, n_par_max))
    ci = np.zeros((n_signals, n_par_max))
    dof = n_eq - n_par_opt
    pe = R22.T @ R22 / dof
    if n_par_opt > 0:
        ar[:, :n_par_opt] = linalg.solve_triangular(R11, R12).T

        # the inverse of the Fisher information, up to the noise variance
        inv_R11 = linalg.solve_triangular(R11, np.eye(n_par_opt))
        u_inv = inv_R11 @ inv_R11.T
        t_quant = stats.t.ppf(0.5 + ccoeff / 2., dof)
        ci[:, :n_par_opt] = t_quant * np.sqrt(
            np.outer(np.diag(pe), np.diag(u_inv)))

    if not np.all(np.isfinite(ar)) or not np.all(np.isfinite(pe)):
        raise LinAlgError('The estimated coefficients are not finite.')

    info = dict(selected_order=order, dof=dof, sbc=sbc, fpe=fpe)
    return ar, pe, ci, info


def _arqr(v, order):
    """QR factorization of the least squares problem of ARfit.

    Parameters
    ----------
    v : np.ndarray, shape (n_epochs, n_times, n_signals)
        The data.
    order : int
        The largest model order.

    Returns
    -------
    R : np.ndarray, shape (n_par + n_signals, n_par + n_signals)
        The upper triangular factor of the regularized data matrix, where
        ``n_par = n_signals * order``.
    """
    n_epochs, n_times, n_signals = v.shape
    n_rows = n_times - order
    n_par = n_signals * order

    # predictors [x(t-1), ..., x(t-p)] followed by the responses x(t)
    K = np.zeros((n_epochs * n_rows, n_par + n_signals))
    for i_epoch in range(n_epochs):
        rows = slice(i_epoch * n_rows, (i_epoch + 1) * n_rows)
        for lag in range(1, order + 1):
            K[rows, (lag - 1) * n_signals:lag * n_signals] = \
                v[i_epoch, order - lag:n_times - lag]
        K[rows, n_par:] = v[i_epoch, order:]

    # regularization against ill-conditioning
    q = n_par + n_signals
    delta = (q ** 2 + q + 1) * np.finfo(float).eps
    scale = np.sqrt(delta) * np.sqrt(np.sum(K ** 2, axis=0))
    R = linalg.qr(np.vstack([K, np.diag(scale)]), mode='r')[0]
    return np.triu(R[:q])


def _arord(R, n_signals, n_eq, min_order, max_order):
    """Evaluate the order selection criteria of all candidate orders.

    Returns
    -------
    sbc, fpe : np.ndarray, shape (n_orders,)
        Schwarz's Bayesian criterion and the logarithm of Akaike's final
        prediction error, for ``min_order, ..., max_order``.
    logdp : np.ndarray, shape (n_orders,)
        The log-determinants of the (unnormalized) noise covariances.
    n_par : np.ndarray of int, shape (n_orders,)
        The number of parameters per equation.
    """
    n_orders = max_order - min_order + 1
    sbc = np.zeros(n_orders)
    fpe = np.zeros(n_orders)
    logdp = np.zeros(n_orders)
    n_par = np.zeros(n_orders, dtype=int)

    n_max = n_signals * max_order
    R22 = R[n_max:n_max + n_signals, n_max:n_max + n_signals]
    inv_R22 = linalg.solve_triangular(R22, np.eye(n_signals))
    Mp = inv_R22 @ inv_R22.T
    logdp[-1] = 2. * np.sum(np.log(np.abs(np.diag(R22))))

    for idx in range(n_orders - 1, -1, -1):
        order = min_order + idx
        n_par[idx] = n_signals * order
        if order < max_order:
            # downdate the noise covariance by the rows of the next lag
            Rp = R[n_par[idx]:n_par[idx] + n_signals, n_max:n_max + n_signals]
            L = np.linalg.cholesky(np.eye(n_signals) + Rp @ Mp @ Rp.T)
            N = linalg.solve_triangular(L, Rp @ Mp, lower=True)
            Mp = Mp - N.T @ N
            logdp[idx] = logdp[idx + 1] + 2. * np.sum(np.log(np.abs(
                np.diag(L))))

        sbc[idx] = logdp[idx] / n_signals - \
            np.log(n_eq) * (n_eq - n_par[idx]) / n_eq
        fpe[idx] = logdp[idx] / n_signals - \
            np.log(n_eq * (n_eq - n_par[idx]) / (n_eq + n_par[idx]))
    return sbc, fpe, logdp, n_par
