# Authors: The mne-tvar developers
#
# License: BSD (3-clause)

import numpy as np
from numpy.linalg import LinAlgError
from scipy.linalg import solve_sylvester


# lattice mode codes: (description, biased normalization, reflection type)
_LATTICE_MODES = {
    1: ('Yule-Walker (Levinson-Wiggins-Robinson)', True, 'yule-walker'),
    2: ('Vieira-Morf, unbiased', False, 'vieira-morf'),
    5: ('Nuttall-Strand, biased', True, 'nuttall-strand'),
    6: ('Nuttall-Strand, unbiased', False, 'nuttall-strand'),
    7: ('Vieira-Morf, biased', True, 'vieira-morf'),
}


def _pad_trials(data, order):
    """Concatenate the epochs of a window, separated by invalid samples.

    Parameters
    ----------
    data : np.ndarray, shape (n_epochs, n_signals, n_times)
        The windowed data.
    order : int
        The model order.

    Returns
    -------
    x : np.ndarray, shape (n_epochs * (n_times + order + 2), n_signals)
        The concatenated series. Invalid samples hold zeros.
    mask : np.ndarray of bool, shape (n_epochs * (n_times + order + 2),)
        True for valid samples.

    Notes
    -----
    Every epoch is followed by ``order + 2`` invalid samples, so that no
    lagged product used by the estimators combines samples of two
    different epochs. Non-finite input samples are marked invalid as well.
    """
    n_epochs, n_signals, n_times = data.shape
    n_pad = order + 2

    x = np.zeros((n_epochs, n_times + n_pad, n_signals))
    x[:, :n_times] = data.transpose(0, 2, 1)
    mask = np.zeros((n_epochs, n_times + n_pad), dtype=bool)
    mask[:, :n_times] = True

    x = x.reshape(-1, n_signals)
    mask = mask.ravel() & np.all(np.isfinite(x), axis=1)
    x[~mask] = 0.
    return x, mask


def _covm(x, y, mask_x, mask_y):
    """Compute the second moment ``x.T @ y`` over jointly valid samples.

    Parameters
    ----------
    x, y : np.ndarray, shape (n_samples, n_signals)
        The observations (rows).
    mask_x, mask_y : np.ndarray of bool, shape (n_samples,)
        The validity of each row.

    Returns
    -------
    cc : np.ndarray, shape (n_signals, n_signals)
        The sum of the outer products of the valid rows.
    n : int
        The number of rows valid in both ``x`` and ``y``.
    """
    if len(x) != len(y):
        raise ValueError('x and y must have the same number of '
                         'observations (rows).')
    joint = mask_x & mask_y
    return x[joint].T @ y[joint], int(joint.sum())


def _right_divide(a, b):
    """Compute ``a @ inv(b)`` with a linear solve."""
    return np.linalg.solve(b.T, a.T).T


def _levinson_update(arf, arb, kf, kb, k, n_signals):
    """Update forward and backward coefficients with new reflections."""
    def blk(idx):
        return slice((idx - 1) * n_signals, idx * n_signals)

    arf[:, blk(k)] = kf
    arb[:, blk(k)] = kb
    for lag in range(1, k):
        tmp = arf[:, blk(lag)] - kf @ arb[:, blk(k - lag)]
        arb[:, blk(k - lag)] = arb[:, blk(k - lag)] - kb @ arf[:, blk(lag)]
        arf[:, blk(lag)] = tmp


def _mvar(x, mask, order, mode=2):
    """Fit a multivariate AR model with a lattice or Levinson recursion.

    Parameters
    ----------
    x : np.ndarray, shape (n_samples, n_signals)
        The (padded) multivariate series.
    mask : np.ndarray of bool, shape (n_samples,)
        The validity of each sample.
    order : int
        The model order.
    mode : int
        The estimation method, see Notes.

    Returns
    -------
    ar : np.ndarray, shape (n_signals, n_signals * order)
        The coefficients ``[A_1, ..., A_p]`` with
        ``x(t) = sum_i A_i x(t - i) + e(t)``.
    rc : np.ndarray, shape (n_signals, n_signals * order)
        The forward reflection coefficients of every stage.
    pe : np.ndarray, shape (n_signals, n_signals * (order + 1))
        The forward prediction error covariance of every stage, starting
        with the zero-lag covariance. The last block is the noise covariance
        of the model.

    Notes
    -----
    Modes:

    - 1: Yule-Walker equations solved with the Levinson-Wiggins-Robinson
      recursion, biased autocovariance estimates.
    - 2: Vieira-Morf partial correlation, unbiased covariance estimates.
    - 5: Nuttall-Strand (multivariate Burg), biased covariance estimates.
    - 6: Nuttall-Strand, unbiased covariance estimates.
    - 7: Vieira-Morf, biased covariance estimates.

    Unbiased estimates divide every sum of products by its own number of
    valid terms; biased estimates divide by the number of valid samples.
    """
    if mode not in _LATTICE_MODES:
        raise ValueError(f'Unknown lattice mode {mode}, must be one of '
                         f'{sorted(_LATTICE_MODES)}.')
    _, biased, method = _LATTICE_MODES[mode]

    n_samples, n_signals = x.shape
    c0, n_valid = _covm(x, x, mask, mask)
    if n_valid <= n_signals * order:
        raise LinAlgError(f'Not enough valid samples ({n_valid}) to fit an '
                          f'order {order} model to {n_signals} signals.')

    arf = np.zeros((n_signals, n_signals * order))
    arb = np.zeros((n_signals, n_signals * order))
    rc = np.zeros((n_signals, n_signals * order))
    pe = np.zeros((n_signals, n_signals * (order + 1)))
    pe[:, :n_signals] = c0 / n_valid

    if method == 'yule-walker':
        gamma = [c0 / n_valid]
        for k in range(1, order + 1):
            cc, _ = _covm(x[k:], x[:-k], mask[k:], mask[:-k])
            gamma.append(cc / n_valid)

        pef = pebk = gamma[0]
        for k in range(1, order + 1):
            delta = gamma[k].copy()
            for lag in range(1, k):
                delta -= arf[:, (lag - 1) * n_signals:lag * n_signals] @ \
                    gamma[k - lag]
            kf = _right_divide(delta, pebk)
            kb = _right_divide(delta.T, pef)
            _levinson_update(arf, arb, kf, kb, k, n_signals)
            pef = pef - kf @ delta.T
            pebk = pebk - kb @ delta
            rc[:, (k - 1) * n_signals:k * n_signals] = kf
            pe[:, k * n_signals:(k + 1) * n_signals] = pef
    else:
        f, b = x.copy(), x.copy()
        f_mask, b_mask = mask.copy(), mask.copy()
        # forward and backward model error covariances of the last stage
        pf = pb = c0 / n_valid
        eye = np.eye(n_signals)
        for k in range(1, order + 1):
            fk, bk = f[k:], b[:n_samples - k]
            fk_mask, bk_mask = f_mask[k:], b_mask[:n_samples - k]

            d, n_d = _covm(fk, bk, fk_mask, bk_mask)
            pef, n_f = _covm(fk, fk, fk_mask, fk_mask)
            peb, n_b = _covm(bk, bk, bk_mask, bk_mask)
            if n_d == 0:
                raise LinAlgError(f'No valid samples left at stage {k}.')
            if biased:
                d, pef, peb = d / n_valid, pef / n_valid, peb / n_valid
            else:
                d, pef, peb = d / n_d, pef / n_f, peb / n_b

            if method == 'vieira-morf':
                kf = _right_divide(d, peb)
                kb = _right_divide(d.T, pef)
            else:
                # minimize the forward and backward errors weighted by the
                # model error covariances, with kb = pb kf' inv(pf)
                kf = solve_sylvester(_right_divide(pef, pf),
                                     _right_divide(peb, pb),
                                     _right_divide(2 * d, pb))
                kb = pb @ _right_divide(kf.T, pf)
                pf, pb = (eye - kf @ kb) @ pf, (eye - kb @ kf) @ pb

            # the lattice: errors are valid only if both inputs were
            joint = fk_mask & bk_mask
            f_new = fk - bk @ kf.T
            b_new = bk - fk @ kb.T
            f_new[~joint] = 0.
            b_new[~joint] = 0.
            f[k:], b[:n_samples - k] = f_new, b_new
            f_mask[k:], b_mask[:n_samples - k] = joint, joint

            _levinson_update(arf, arb, kf, kb, k, n_signals)
            rc[:, (k - 1) * n_signals:k * n_signals] = kf

            pef, n_f = _covm(f[k:], f[k:], f_mask[k:], f_mask[k:])
            pe[:, k * n_signals:(k + 1) * n_signals] = \
                pef / (n_valid if biased else n_f)

    if not np.all(np.isfinite(arf)) or not np.all(np.isfinite(pe)):
        raise LinAlgError('The estimated coefficients are not finite.')
    return arf, rc, pe
