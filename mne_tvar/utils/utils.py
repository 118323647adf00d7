# Authors: The mne-tvar developers
#
# License: BSD (3-clause)
import numpy as np
from mne import BaseEpochs
from mne.utils import check_random_state, logger

from .docs import fill_doc


@fill_doc
def compute_window_starts(sfreq, epoch_tlims, win_len, win_step,
                          win_start_idx=None, prct_win_to_sample=100,
                          random_state=None):
    """Compute the sample indices at which the analysis windows start.

    Parameters
    ----------
    sfreq : float
        The sampling frequency in Hz.
    epoch_tlims : tuple of float, shape (2,)
        The time range ``(t0, t1)`` in seconds to place the windows in.
    win_len : float
        The window length in seconds.
    win_step : float
        The step between consecutive windows in seconds.
    win_start_idx : array-like of int | None
        Explicit (0-based) start indices. If given, they are used as is
        and the window placement parameters are ignored.
    prct_win_to_sample : float
        Percentage of windows to randomly keep, in ``(0, 100]``.
    %(random_state)s

    Returns
    -------
    starts : np.ndarray of int, shape (n_windows,)
        The window start indices, in ascending temporal order. Empty if
        no window fits in ``epoch_tlims``.

    Notes
    -----
    Windows start at ``t0, t0 + win_step, ...`` and the last window is the
    last one that ends before ``t1``, so there are
    ``floor((t1 - t0 - win_len) / win_step) + 1`` windows. The start index
    of a window starting at ``t`` seconds is ``floor(t * sfreq)``.

    If ``prct_win_to_sample < 100``, ``ceil(n_windows * prct / 100)``
    windows are drawn without replacement and sorted.
    """
    prct_win_to_sample = float(prct_win_to_sample)
    if not 0 < prct_win_to_sample <= 100:
        raise ValueError('prct_win_to_sample must be in the range (0, 100], '
                         f'got {prct_win_to_sample}.')

    if win_start_idx is not None:
        starts = np.atleast_1d(np.asarray(win_start_idx)).astype(int)
    else:
        t0, t1 = epoch_tlims
        if win_len <= 0 or win_step <= 0 or t1 - win_len < t0:
            logger.info(f'No window of {win_len} sec with step {win_step} '
                        f'sec fits in [{t0}, {t1}] sec')
            starts = np.zeros(0, dtype=int)
        else:
            # the tolerances absorb floating point accumulation
            n_windows = int(np.floor((t1 - t0 - win_len) / win_step + 1e-9))
            n_windows += 1
            start_times = t0 + np.arange(n_windows) * win_step
            starts = np.floor(start_times * sfreq + 1e-9).astype(int)

    if prct_win_to_sample < 100 and len(starts) > 0:
        rng = check_random_state(random_state)
        n_keep = int(np.ceil(len(starts) * prct_win_to_sample / 100.))
        keep = np.sort(rng.permutation(len(starts))[:n_keep])
        starts = starts[keep]
        logger.info(f'Randomly selected {n_keep} windows')
    return starts


def _check_order(order, selects_order=False):
    """Check the model order and return it as (min_order, max_order)."""
    orders = np.atleast_1d(np.asarray(order))
    if orders.ndim != 1 or len(orders) not in (1, 2) or \
            not np.issubdtype(orders.dtype, np.integer):
        raise ValueError('order must be a positive integer or a list of '
                         f'two positive integers, got {order}.')
    if np.any(orders < 1):
        raise ValueError(f'order must be positive, got {order}.')
    if len(orders) == 2:
        if not selects_order:
            raise ValueError('An order range is only supported by algorithms '
                             'that select the model order, such as '
                             f'"arfit", got {order}.')
        if orders[0] > orders[1]:
            raise ValueError('The minimum order must not exceed the maximum '
                             f'order, got {order}.')
        return int(orders[0]), int(orders[1])
    return int(orders[0]), int(orders[0])


def _prepare_data(data, sfreq=None, names=None, tmin=None, condition=None):
    """Get the data array and its metadata from an array or Epochs."""
    if isinstance(data, BaseEpochs):
        sfreq = data.info['sfreq']
        names = data.ch_names
        tmin = data.tmin
        if condition is None and len(data.event_id) > 0:
            condition = ', '.join(data.event_id)
        data = data.get_data(copy=True)
    else:
        if sfreq is None:
            raise ValueError('Sampling frequency (sfreq) is required with '
                             'array input.')
        data = np.asarray(data, dtype=float)

    if data.ndim != 3:
        raise ValueError('data must be of shape (n_epochs, n_signals, '
                         f'n_times), got {data.ndim} dimensions.')
    n_nodes = data.shape[1]
    if names is None:
        names = list(np.arange(n_nodes).astype(str))
    names = [str(name) for name in names]
    if len(names) != n_nodes:
        raise ValueError(f'The number of names ({len(names)}) does not match '
                         f'the number of signals ({n_nodes}).')
    if tmin is None:
        tmin = 0.
    return data, float(sfreq), names, float(tmin), condition
