from .docs import fill_doc
from .utils import (
    _check_order,
    _prepare_data,
    compute_window_starts,
)
