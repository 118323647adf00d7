"""The documentation functions."""
# Authors: The mne-tvar developers
#
# License: BSD (3-clause)

from mne.utils.docs import _indentcount_lines


##############################################################################
# Define our standard documentation entries

docdict = dict()

# Data
docdict["data"] = """
data : array-like, shape (n_epochs, n_signals, n_times) | Epochs
    The epoched data from which to estimate the models. If an
    :class:`mne.Epochs` instance, ``sfreq``, ``names``, ``tmin`` and
    ``condition`` are taken from it.
"""

docdict["names"] = """
names : list | np.ndarray | None
    The names of the nodes of the dataset used to compute
    connectivity. If 'None' (default), then names will be
    a list of integers from 0 to ``n_nodes``. If a list
    of names, then it must be equal in length to ``n_nodes``.
"""

docdict["sfreq"] = """
sfreq : float | None
    The sampling frequency in Hz. Required if ``data`` is an array.
"""

docdict["order"] = """
order : int | list of int
    The model order. A list ``[pmin, pmax]`` is only accepted by algorithms
    that select the order themselves (``'arfit'``), in which case the
    optimal order is chosen per window and the coefficients are zero-padded
    to ``pmax``.
"""

docdict["algorithm"] = """
algorithm : str | int
    The model fitting algorithm. One of ``'vieira-morf'``, ``'arfit'``,
    ``'least-squares'`` or one of the lattice mode codes ``1`` (Yule-Walker),
    ``2`` (Vieira-Morf, unbiased), ``5`` (Nuttall-Strand, biased),
    ``6`` (Nuttall-Strand, unbiased) or ``7`` (Vieira-Morf, biased).
"""

docdict["windows"] = """
win_len : float | None
    The window length in seconds. If None, a single window spans
    ``epoch_tlims``.
win_step : float | None
    The step between consecutive windows in seconds. Defaults to
    ``win_len``.
epoch_tlims : tuple of float | None
    The time range to analyze in seconds, where 0 is the first sample of
    each epoch. Defaults to the whole epoch.
win_start_idx : array-like of int | None
    Explicit sample indices (0-based) at which windows start. Overrides
    ``win_len``/``win_step`` based window placement.
prct_win_to_sample : float
    Percentage of windows to randomly select (without replacement). The
    selected windows are kept in temporal order. Default 100.
"""

docdict["callback"] = """
callback : callable | None
    Called as ``callback(n_done, n_windows)`` after every window. If it
    returns a truthy value, the loop stops and the partial result is
    returned with ``cancelled=True``.
"""

docdict["progress_bar"] = """
progress_bar : bool
    Whether to show a progress bar over the windows. Default False.
"""

docdict["method"] = """
method : str | list of str
    The connectivity measure(s) to compute. Valid names are ``'S'``,
    ``'Coh'``, ``'iCoh'``, ``'pCoh'``, ``'DTF'``, ``'ffDTF'``,
    ``'dDTF'``, ``'PDC'`` and ``'GPDC'``. Duplicates are ignored.
"""

docdict["freqs"] = """
freqs : array-like of float | None
    The frequencies (Hz) at which to evaluate the transfer function. If
    None, ``1, 2, ..., floor(sfreq / 2)``.
"""

# Verbose
docdict["verbose"] = """
verbose : bool, str, int, or None
    If not None, override default verbose level (see :func:`mne.verbose`
    for more info). If used, it should be passed as a
    keyword-argument only."""

# Random state
docdict["random_state"] = """
random_state : None | int | instance of ~numpy.random.RandomState
    If ``random_state`` is an :class:`int`, it will be used as a seed for
    :class:`~numpy.random.RandomState`. If ``None``, the seed will be
    obtained from the operating system (see
    :class:`~numpy.random.RandomState` for details). Default is
    ``None``.
"""

docdict_indented = dict()  # type: ignore


def fill_doc(f):
    """Fill a docstring with docdict entries.

    Parameters
    ----------
    f : callable
        The function to fill the docstring of. Will be modified in place.

    Returns
    -------
    f : callable
        The function, potentially with an updated ``__doc__``.
    """
    docstring = f.__doc__
    if not docstring:
        return f
    lines = docstring.splitlines()
    # Find the minimum indent of the main docstring, after first line
    if len(lines) < 2:
        icount = 0
    else:
        icount = _indentcount_lines(lines[1:])
    # Insert this indent to dictionary docstrings
    try:
        indented = docdict_indented[icount]
    except KeyError:
        indent = " " * icount
        docdict_indented[icount] = indented = {}
        for name, dstr in docdict.items():
            lines = dstr.splitlines()
            try:
                newlines = [lines[0]]
                for line in lines[1:]:
                    newlines.append(indent + line)
                indented[name] = "\n".join(newlines)
            except IndexError:
                indented[name] = dstr
    try:
        f.__doc__ = docstring % indented
    except (TypeError, ValueError, KeyError) as exp:
        funcname = f.__name__
        funcname = docstring.split("\n")[0] if funcname is None else funcname
        raise RuntimeError(f"Error documenting {funcname}:\n{str(exp)}")
    return f
