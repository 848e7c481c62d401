"""Vectorised escape-time kernel built on TensorFlow."""

from __future__ import annotations

from typing import Optional

import numpy as np
import tensorflow as tf

from .verbosity import quiet_tensorflow_logger

quiet_tensorflow_logger(tf)


@tf.function
def _escape_step(zs: tf.Tensor, cs: tf.Tensor, active: tf.Tensor, diverged: tf.Tensor, radius: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor]:
    """Perform a single iteration for the points that are still bounded."""

    zs_new = zs * zs + cs
    zs = tf.where(active, zs_new, zs)
    escaped = tf.logical_and(active, tf.abs(zs) > radius)
    diverged = tf.logical_or(diverged, escaped)
    active = tf.logical_and(active, tf.logical_not(escaped))
    return zs, active, diverged


@tf.function(reduce_retracing=True)
def _escape_run(cs: tf.Tensor, max_iterations: tf.Tensor, radius: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Iterate the whole batch with a TensorFlow while loop until every point escaped or the limit is hit."""

    max_iterations = tf.cast(max_iterations, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    zs = tf.zeros_like(cs)
    active = tf.ones_like(tf.math.real(cs), tf.bool)
    diverged = tf.zeros_like(active)

    def cond(i: tf.Tensor, zs: tf.Tensor, active: tf.Tensor, diverged: tf.Tensor) -> tf.Tensor:
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i: tf.Tensor, zs: tf.Tensor, active: tf.Tensor, diverged: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
        zs, active, diverged = _escape_step(zs, cs, active, diverged, radius)
        return i + 1, zs, active, diverged

    return tf.while_loop(cond, body, (i, zs, active, diverged))


def evaluate_batch(positions: np.ndarray, max_iterations: int, escape_radius: float, *, device: Optional[str] = None) -> np.ndarray:
    """Evaluate every position at once.

    Returns the final ``|z|`` of each point as float64, with ``nan`` where the
    orbit escaped. Matches :func:`mandelgrid.escape.evaluate` point for point.
    """

    positions = np.asarray(positions, dtype=np.complex128).ravel()
    if positions.size == 0:
        return np.empty(0, dtype=np.float64)

    with tf.device(device if device is not None else "/CPU:0"):
        cs = tf.convert_to_tensor(positions, dtype=tf.complex128)
        radius = tf.constant(escape_radius, dtype=tf.float64)
        limit = tf.constant(max_iterations, dtype=tf.int32)

        _, zs, _, diverged = _escape_run(cs, limit, radius)

        magnitudes = tf.abs(zs)
        nan = tf.fill(tf.shape(magnitudes), tf.constant(np.nan, dtype=tf.float64))
        values = tf.where(diverged, nan, magnitudes)

    return values.numpy()
