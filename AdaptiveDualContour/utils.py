"""
Utility Functions
=================

This module provides general utility functions used throughout
AdaptiveDualContour, including logging configuration and the tolerance
comparisons shared by the refinement criterion and the QEF pruning.

Functions
---------
configure_logging
    Set up logging for the AdaptiveDualContour package with customizable
    output format and destinations.
isapprox
    Mixed relative/absolute closeness test for scalars and vectors.
sign_class
    Map signed distances to the classes -1, 0 and +1.
"""

import logging

import numpy as np

import AdaptiveDualContour


def configure_logging(level=logging.INFO, logfile=None):
    """Configure logging for the AdaptiveDualContour package.

    Sets up a logger with a standard format and optional file output.
    This is called automatically when AdaptiveDualContour is imported.

    Parameters
    ----------
    level : int, default logging.INFO
        Logging level (e.g., logging.DEBUG, logging.INFO, logging.WARNING).
    logfile : str, optional
        Path to log file. If provided, logs are written to both console
        and file. If None, logs only to console.

    Examples
    --------
    >>> from AdaptiveDualContour.utils import configure_logging
    >>> import logging
    >>>
    >>> # Trace every refinement decision into a file
    >>> configure_logging(level=logging.DEBUG, logfile='contour.log')

    Notes
    -----
    The log format is: "HH:MM:SS message"
    """
    logger = logging.getLogger(AdaptiveDualContour.__name__)
    logger.setLevel(level)

    formatter = logging.Formatter("%(asctime)s %(message)s", datefmt="%H:%M:%S")
    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        logger_handler = logging.StreamHandler()
        logger_handler.setFormatter(formatter)
        logger.addHandler(logger_handler)

    if logfile is not None:
        file_logger_handler = logging.FileHandler(logfile)
        file_logger_handler.setFormatter(formatter)
        logger.addHandler(file_logger_handler)


def isapprox(x, y, rtol: float, atol: float) -> bool:
    """Check whether ``x`` and ``y`` are approximately equal.

    Uses the norm of the difference, so it works for scalars and vectors
    alike::

        ||x - y|| <= max(atol, rtol * max(||x||, ||y||))

    Non-finite inputs are never approximately equal to anything.

    Parameters
    ----------
    x, y : float or array-like
        Values to compare.
    rtol : float
        Relative tolerance.
    atol : float
        Absolute tolerance.

    Returns
    -------
    bool
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
        return False
    diff = np.linalg.norm(x - y)
    scale = max(np.linalg.norm(x), np.linalg.norm(y))
    return bool(diff <= max(atol, rtol * scale))


def sign_class(values) -> np.ndarray:
    """Classify signed distances into -1 (inside), 0 (on) and +1 (outside).

    ``0.0`` and ``-0.0`` both map to class 0.
    """
    return np.sign(np.asarray(values, dtype=np.float64)).astype(np.int8)
