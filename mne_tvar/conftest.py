# -*- coding: utf-8 -*-
# Authors: The mne-tvar developers
#
# License: BSD (3-clause)

import numpy as np
import pytest


def pytest_configure(config):
    """Configure pytest options."""
    warning_lines = r"""
    error::
    ignore:.*String decoding changed with h5py.*:FutureWarning
    ignore:.*distutils Version classes are deprecated.*:DeprecationWarning
    ignore:.*You are writing invalid netcdf features to file.*:UserWarning
    ignore:.*is deprecated.*:DeprecationWarning:xarray
    ignore:.*is deprecated.*:DeprecationWarning:h5netcdf
    ignore:.*is deprecated.*:DeprecationWarning:h5py
    ignore::FutureWarning:xarray
    always::ResourceWarning
    """  # noqa: E501
    for warning_line in warning_lines.split('\n'):
        warning_line = warning_line.strip()
        if warning_line and not warning_line.startswith('#'):
            config.addinivalue_line('filterwarnings', warning_line)


@pytest.fixture(scope='session')
def var2_coefs():
    """Coefficients of a five channel VAR(2) process.

    Channel 0 oscillates at one eighth of the sampling frequency and drives
    channels 1 to 3 at lag 2. Channels 3 and 4 are coupled at lag 1.
    """
    r2 = np.sqrt(2)
    A1 = np.zeros((5, 5))
    A2 = np.zeros((5, 5))
    A1[0, 0] = 0.95 * r2
    A2[0, 0] = -0.9025
    A2[1, 0] = 0.5
    A2[2, 0] = -0.4
    A2[3, 0] = -0.5
    A1[3, 3] = 0.25 * r2
    A1[3, 4] = 0.25 * r2
    A1[4, 3] = -0.25 * r2
    A1[4, 4] = 0.25 * r2
    return np.hstack([A1, A2])
