from .var import fit_mvar
from .model_selection import select_order
