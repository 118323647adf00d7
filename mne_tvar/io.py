import numpy as np
import xarray as xr

from .base import MVARConnectivity


def _xarray_to_conn(dataset, cls_func):
    """Create connectivity class from xarray.

    Parameters
    ----------
    dataset : xarray.Dataset
        Xarray containing the connectivity data.
    cls_func : MVARConnectivity class
        The function of the connectivity class to use.

    Returns
    -------
    conn : instance of MVARConnectivity
        An instantiated connectivity class.
    """
    # get the data of every measure
    data = {str(method): dataset[method].values
            for method in dataset.data_vars}

    # get the dimensions
    coords = dataset.coords
    attrs = dict(dataset.attrs)
    cancelled = bool(attrs.pop('cancelled', 0))

    # create the connectivity class
    conn = cls_func(
        data=data, freqs=coords['freqs'].values,
        times=coords['times'].values, er_times=coords['er_times'].values,
        names=[str(name) for name in coords['sink'].values],
        valid=coords['valid'].values.astype(bool), cancelled=cancelled,
        **attrs
    )
    return conn


def read_connectivity(fname):
    """Read connectivity data from netCDF file.

    Parameters
    ----------
    fname : str | pathlib.Path
        The filepath.

    Returns
    -------
    conn : instance of MVARConnectivity
        A connectivity class.
    """
    # open up a dataset using xarray
    # h5netcdf is the engine the data is written with
    with xr.open_dataset(fname, engine='h5netcdf') as conn_ds:
        conn_ds = conn_ds.load()

    # map 'n/a' to 'None'
    for key, val in conn_ds.attrs.items():
        if not isinstance(val, list) and not isinstance(val, np.ndarray):
            if val == 'n/a':
                conn_ds.attrs[key] = None
    # get the name of the class
    data_structure_name = conn_ds.attrs.pop('data_structure')

    # map class name to its actual class
    conn_cls = {
        'MVARConnectivity': MVARConnectivity,
    }
    cls_func = conn_cls[data_structure_name]

    # get the data as a new connectivity container
    conn = _xarray_to_conn(conn_ds, cls_func)
    return conn
