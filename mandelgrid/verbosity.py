"""Verbose-gated console logging."""

from __future__ import annotations

import os
import warnings

VERBOSE = False


def configure(verbose: bool) -> None:
    """Enable or silence diagnostic output, including TensorFlow's native logs.

    Must run before TensorFlow is imported for the environment variable to
    take effect.
    """

    global VERBOSE
    VERBOSE = bool(verbose)

    if not VERBOSE and os.environ.get("TF_CPP_MIN_LOG_LEVEL") is None:
        os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

    if not VERBOSE:
        warnings.filterwarnings(
            "ignore",
            message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
            category=UserWarning,
            module="google.protobuf",
        )


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


def quiet_tensorflow_logger(tf) -> None:
    """Lower TensorFlow's Python logger and its handlers to errors unless verbose."""

    if VERBOSE:
        return
    logger = tf.get_logger()
    logger.setLevel("ERROR")
    for handler in logger.handlers:
        handler.setLevel("ERROR")
