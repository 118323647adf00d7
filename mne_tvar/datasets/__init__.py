from .var import make_var_data
