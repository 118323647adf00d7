from copy import deepcopy

import numpy as np
import xarray as xr
from mne.utils import _check_option, _validate_type, object_size, sizeof_fmt

from .utils import fill_doc

# algorithms whose window estimate is instantaneous (filtered/recursive),
# so that the window is located at its start rather than its center
_INSTANTANEOUS_ALGORITHMS = ('kalman',)


class TimeVaryingVAR:
    """A time-resolved (windowed) vector autoregressive model.

    Parameters
    ----------
    ar : list of np.ndarray | None, shape (n_windows,)
        The coefficients ``[A_1, ..., A_p]`` of each window, each of shape
        ``(n_nodes, n_nodes * order)``. None marks a window without estimate.
    pe : list of np.ndarray | None, shape (n_windows,)
        The noise covariance of each window. Matrices wider than
        ``n_nodes`` hold the noise covariance in their last ``n_nodes``
        columns.
    order : int
        The model order.
    sfreq : float
        The sampling frequency of the data.
    win_start_times : array-like of float, shape (n_windows,)
        The start time of each window in seconds, relative to the start of
        the epochs.
    win_len : float
        The window length in seconds.
    win_step : float
        The window step in seconds.
    algorithm : str
        The algorithm that fitted the model.
    n_nodes : int
        The number of signals.
    names : list of str | None
        The names of the signals.
    rc : list of np.ndarray | None
        The reflection coefficients of each window, if produced.
    ci : list of np.ndarray | None
        The half-widths of the coefficient confidence intervals of each
        window, if produced.
    info : list of dict | None
        Per-window diagnostics of the fitting algorithm.
    tmin : float
        The time of the first sample of the epochs relative to the event.
    condition : str | None
        The condition label of the data.
    time_elapsed : np.ndarray | None
        The wall-clock duration of each window fit.
    cancelled : bool
        Whether fitting was cancelled before all windows were processed.

    Notes
    -----
    The model of window ``w`` is

    .. math::
        x(t) = \\sum_{i=1}^{p} A_i x(t-i) + e(t)

    where ``A_i = ar[w][:, (i - 1) * n_nodes:i * n_nodes]`` and ``e(t)``
    has covariance ``get_noise_cov(w)``.
    """

    def __init__(self, ar, pe, order, sfreq, win_start_times, win_len,
                 win_step, algorithm, n_nodes, names=None, rc=None, ci=None,
                 info=None, tmin=0., condition=None, time_elapsed=None,
                 cancelled=False):
        n_windows = len(ar)
        if len(pe) != n_windows or len(win_start_times) != n_windows:
            raise ValueError('ar, pe and win_start_times must have the same '
                             f'length, got {len(ar)}, {len(pe)} and '
                             f'{len(win_start_times)}.')
        if names is None:
            names = list(np.arange(n_nodes).astype(str))
        empty = [None] * n_windows

        self.ar = list(ar)
        self.pe = list(pe)
        self.rc = list(rc) if rc is not None else list(empty)
        self.ci = list(ci) if ci is not None else list(empty)
        self.info = list(info) if info is not None else list(empty)
        self.order = int(order)
        self.sfreq = float(sfreq)
        self.win_start_times = np.asarray(win_start_times, dtype=float)
        self.win_len = float(win_len)
        self.win_step = float(win_step)
        self.algorithm = str(algorithm)
        self.n_nodes = int(n_nodes)
        self.names = list(names)
        self.tmin = float(tmin)
        self.condition = condition
        self.time_elapsed = time_elapsed
        self.cancelled = bool(cancelled)

        for idx in self.valid:
            shape = self.ar[idx].shape
            if shape != (self.n_nodes, self.n_nodes * self.order):
                raise ValueError(
                    f'The coefficients of window {idx} have shape {shape}, '
                    f'expected {(self.n_nodes, self.n_nodes * self.order)}.')

    def __repr__(self) -> str:
        r = f'<{self.__class__.__name__} | '
        r += f'VAR[{self.order}], {self.algorithm}, '
        r += f'n_nodes : {self.n_nodes}, n_windows : {self.n_windows}'
        if self.missing:
            r += f', missing : {len(self.missing)}'
        if self.cancelled:
            r += ', cancelled'
        r += f', ~{sizeof_fmt(self._size)}'
        r += '>'
        return r

    def __len__(self):
        return self.n_windows

    @property
    def _size(self):
        """Estimate the object size."""
        return sum(object_size(arr) for arr in self.ar + self.pe
                   if arr is not None)

    @property
    def n_windows(self):
        """The number of windows."""
        return len(self.ar)

    @property
    def missing(self):
        """The indices of the windows without model estimate."""
        return [idx for idx, ar in enumerate(self.ar) if ar is None]

    @property
    def valid(self):
        """The indices of the windows with a model estimate."""
        return [idx for idx, ar in enumerate(self.ar) if ar is not None]

    @property
    def win_center_times(self):
        """The time (sec) of each window relative to the epoch start.

        This is the window center, except for algorithms whose estimate
        is instantaneous, where it is the window start.
        """
        if self.algorithm.lower() in _INSTANTANEOUS_ALGORITHMS:
            return self.win_start_times.copy()
        return self.win_start_times + self.win_len / 2.

    @property
    def er_win_center_times(self):
        """The window times (sec) relative to the event."""
        return self.win_center_times + self.tmin

    def _check_window(self, idx):
        if not 0 <= idx < self.n_windows:
            raise IndexError(f'Window {idx} out of range for a model with '
                             f'{self.n_windows} windows.')
        if self.ar[idx] is None:
            raise ValueError(f'Window {idx} has no model estimate.')

    def get_noise_cov(self, idx):
        """Get the noise covariance matrix of one window.

        Parameters
        ----------
        idx : int
            The window index.

        Returns
        -------
        noise_cov : np.ndarray, shape (n_nodes, n_nodes)
            The noise covariance.
        """
        self._check_window(idx)
        return self.pe[idx][:, -self.n_nodes:]

    def get_coefs(self, idx):
        """Get the coefficient matrices of one window per lag.

        Returns
        -------
        coefs : np.ndarray, shape (order, n_nodes, n_nodes)
            ``coefs[i]`` is the matrix of lag ``i + 1``.
        """
        self._check_window(idx)
        return self.ar[idx].reshape(
            self.n_nodes, self.order, self.n_nodes).transpose(1, 0, 2)

    def companion(self, idx):
        """Generate the block companion matrix of one window.

        Returns the coefficient matrix if the model is VAR(1).
        """
        from .vector_ar.utils import _block_companion

        coefs = self.get_coefs(idx)
        if self.order == 1:
            return coefs[0]
        return _block_companion(list(coefs))

    def eigvals(self, idx):
        """The eigenvalues of the companion matrix of one window."""
        return np.linalg.eigvals(self.companion(idx))

    def spectral_radius(self):
        """The largest absolute eigenvalue of each window's model.

        Returns
        -------
        radius : np.ndarray, shape (n_windows,)
            NaN for windows without estimate.
        """
        radius = np.full(self.n_windows, np.nan)
        for idx in self.valid:
            radius[idx] = np.abs(self.eigvals(idx)).max()
        return radius

    def is_stable(self):
        """Whether the model of every estimated window is stable."""
        radius = self.spectral_radius()
        radius = radius[np.isfinite(radius)]
        return bool(np.all(radius < 1.))

    def predict(self, data, idx):
        """Predict samples one step ahead with the model of one window.

        The result of this function is used for calculating the residuals.

        Parameters
        ----------
        data : array, shape (n_epochs, n_nodes, n_times) | (n_nodes, n_times)
            The data to predict.
        idx : int
            The window whose model to apply.

        Returns
        -------
        predicted : array
            Data as predicted by the VAR model, of the same shape as
            ``data``. The first ``order`` samples, which have no full
            history, are zero.

        Notes
        -----
        Residuals are obtained by ``r = x - var.predict(x, idx)``.
        """
        data = np.asarray(data)
        if data.ndim < 2 or data.ndim > 3:
            raise ValueError(f'Data passed in must be either 2D or 3D. '
                             f'The data you passed in has {data.ndim} dims.')
        squeeze = data.ndim == 2
        if squeeze:
            data = data[np.newaxis, ...]
        if data.shape[1] != self.n_nodes:
            raise ValueError(f'Data has {data.shape[1]} signals, the model '
                             f'has {self.n_nodes}.')

        coefs = self.get_coefs(idx)
        n_times = data.shape[2]
        predicted = np.zeros(data.shape)
        for lag in range(1, self.order + 1):
            predicted[:, :, self.order:] += np.einsum(
                'ij,ejt->eit', coefs[lag - 1],
                data[:, :, self.order - lag:n_times - lag])

        if squeeze:
            predicted = predicted[0]
        return predicted

    def copy(self):
        """Copy the model."""
        return deepcopy(self)


@fill_doc
class MVARConnectivity:
    """Time-resolved spectral connectivity derived from a VAR model.

    Parameters
    ----------
    data : dict of np.ndarray
        The connectivity tensors keyed by measure name, each of shape
        ``(n_nodes, n_nodes, n_freqs, n_windows)``.
    freqs : array-like of float, shape (n_freqs,)
        The frequencies of the transfer function.
    times : array-like of float, shape (n_windows,)
        The window times (sec) relative to the epoch start.
    er_times : array-like of float, shape (n_windows,) | None
        The window times (sec) relative to the event. Defaults to ``times``.
    %(names)s
    valid : array-like of bool, shape (n_windows,) | None
        Whether each window holds an estimate. Defaults to all True.
    cancelled : bool
        Whether estimation was cancelled before all windows were processed.
    **attrs : dict
        Extra attributes, such as the model ``order`` and ``algorithm``.

    Notes
    -----
    Entry ``(i, j)`` of each matrix describes the coupling from node ``j``
    (``source``) to node ``i`` (``sink``). Windows without estimate hold
    zeros.
    """

    def __init__(self, data, freqs, times, er_times=None, names=None,
                 valid=None, cancelled=False, **attrs):
        _validate_type(data, dict, 'data')
        freqs = np.atleast_1d(np.asarray(freqs, dtype=float))
        times = np.atleast_1d(np.asarray(times, dtype=float))
        er_times = times.copy() if er_times is None else \
            np.atleast_1d(np.asarray(er_times, dtype=float))
        valid = np.ones(len(times), dtype=bool) if valid is None else \
            np.asarray(valid, dtype=bool)

        shapes = {np.shape(arr) for arr in data.values()}
        if len(shapes) > 1:
            raise ValueError('All connectivity tensors must have the same '
                             f'shape, got {shapes}.')
        if shapes:
            shape = shapes.pop()
            if len(shape) != 4 or shape[0] != shape[1] or \
                    shape[2:] != (len(freqs), len(times)):
                raise ValueError(
                    f'Connectivity tensors have shape {shape}, expected '
                    f'(n_nodes, n_nodes, {len(freqs)}, {len(times)}).')
            n_nodes = shape[0]
        else:
            n_nodes = len(names) if names is not None else 0
        if names is None:
            names = list(np.arange(n_nodes).astype(str))
        names = [str(name) for name in names]
        if len(names) != n_nodes:
            raise ValueError(f'The number of names ({len(names)}) does not '
                             f'match the number of nodes ({n_nodes}).')

        attrs = {key: ('n/a' if val is None else val)
                 for key, val in attrs.items()}
        attrs['cancelled'] = int(cancelled)
        coords = dict(sink=names, source=names, freqs=freqs, times=times,
                      er_times=('times', er_times),
                      valid=('times', valid.astype(np.int8)))
        data_vars = {method: (('sink', 'source', 'freqs', 'times'), arr)
                     for method, arr in data.items()}
        self._obj = xr.Dataset(data_vars, coords=coords, attrs=attrs)

    def __repr__(self) -> str:
        r = f'<{self.__class__.__name__} | '
        r += f'methods : {", ".join(self.methods)}, '
        r += f'n_nodes : {self.n_nodes}, '
        r += f'freq : [{_fmt_range(self.freqs)}], '
        r += f'n_windows : {self.n_windows}'
        if self.cancelled:
            r += ', cancelled'
        r += f', ~{sizeof_fmt(self._size)}'
        r += '>'
        return r

    def __getitem__(self, method):
        return self.get_data(method)

    def __contains__(self, method):
        return method in self._obj.data_vars

    @property
    def _size(self):
        """Estimate the object size."""
        return sum(object_size(self._obj[method].values)
                   for method in self.methods)

    @property
    def xarray(self):
        """The underlying :class:`xarray.Dataset`."""
        return self._obj

    @property
    def attrs(self):
        """Xarray attributes of connectivity."""
        return self._obj.attrs

    @property
    def methods(self):
        """The names of the connectivity measures."""
        return [str(method) for method in self._obj.data_vars]

    @property
    def freqs(self):
        """The frequency points of the connectivity data."""
        return self._obj.coords['freqs'].values.tolist()

    @property
    def times(self):
        """The window times (sec) relative to the epoch start."""
        return self._obj.coords['times'].values.tolist()

    @property
    def er_times(self):
        """The window times (sec) relative to the event."""
        return self._obj.coords['er_times'].values.tolist()

    @property
    def names(self):
        """Node names."""
        return [str(name) for name in self._obj.coords['sink'].values]

    @property
    def n_nodes(self):
        """The number of nodes."""
        return len(self._obj.coords['sink'])

    @property
    def n_windows(self):
        """The number of windows."""
        return len(self._obj.coords['times'])

    @property
    def missing(self):
        """The indices of the windows without estimate."""
        return np.flatnonzero(
            self._obj.coords['valid'].values == 0).tolist()

    @property
    def cancelled(self):
        """Whether estimation was cancelled."""
        return bool(self._obj.attrs.get('cancelled', 0))

    def get_data(self, method):
        """Get the connectivity data of one measure as a numpy array.

        Parameters
        ----------
        method : str
            The name of the measure.

        Returns
        -------
        data : np.ndarray, shape (n_nodes, n_nodes, n_freqs, n_windows)
            The connectivity tensor.
        """
        _check_option('method', method, self.methods)
        return self._obj[method].values

    def copy(self):
        """Copy the connectivity object."""
        return deepcopy(self)

    def save(self, fname):
        """Save connectivity data to disk.

        Parameters
        ----------
        fname : str | pathlib.Path
            The filepath to save the data. Data is saved
            as netCDF files (``.nc`` extension).
        """
        self._obj.attrs['data_structure'] = str(self.__class__.__name__)
        # save as a netCDF file
        # note this requires the h5netcdf python library
        self._obj.to_netcdf(fname, mode='w', format='NETCDF4',
                            engine='h5netcdf')
        del self._obj.attrs['data_structure']


def _fmt_range(values):
    if len(values) == 0:
        return ''
    return f'{values[0]}, {values[-1]}'
