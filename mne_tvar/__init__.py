"""Time-varying VAR models and connectivity for MEG, EEG and iEEG data."""

# Authors: The mne-tvar developers
#
# License: BSD (3-clause)

__version__ = '0.1.dev0'

from .base import MVARConnectivity, TimeVaryingVAR
from .datasets import make_var_data
from .io import read_connectivity
from .spectral import estimate_memory, mvar_connectivity
from .utils import compute_window_starts
from .vector_ar import fit_mvar, select_order
