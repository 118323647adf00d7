from .mvar import estimate_memory, mvar_connectivity
