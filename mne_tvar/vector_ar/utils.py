import numpy as np


def _block_companion(mats):
    """Form a block companion matrix.

    Parameters
    ----------
    mats : list of np.ndarray, shape (n_nodes, n_nodes)
        The lag matrices ``[A_1, ..., A_p]`` of a VAR model.

    Returns
    -------
    companion : np.ndarray, shape (n_nodes * p, n_nodes * p)
        The matrix of the equivalent VAR(1) model of the stacked state
        ``[x(t), ..., x(t - p + 1)]``.
    """
    eye_n = np.eye(np.sum([x.shape[1] for x in mats[:-1]]))
    return np.block([[*mats],
                     [eye_n, np.zeros([eye_n.shape[0], mats[-1].shape[1]])]])
