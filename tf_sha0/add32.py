"""Fixed-length Additions for tf Graphs.

Words are float32 tensors whose last axis holds 32 bits, most significant
bit first. Leading axes (word index, batch) are carried through untouched.
"""

import tensorflow as tf

from tf_sha0 import constants

BIT_WIDTH = constants.BIT_WIDTH
_NO_CARRY = tf.where(tf.greater(tf.range(BIT_WIDTH), 0), 1.0, 0.0)


@tf.function(reduce_retracing=True)
def scale(a: tf.Tensor) -> tf.Tensor:
    """Snap a tensor onto the {0, 1} boundary."""
    return tf.where(tf.greater(a, 0.5), 1.0, 0.0)


@tf.function(reduce_retracing=True)
def _carry(sum_: tf.Tensor) -> tf.Tensor:
    init_carry = tf.ones_like(sum_, dtype=tf.float32)

    def _more_to_carry(_, carry: tf.Tensor) -> bool:
        return tf.reduce_sum(carry) > 0

    def _propagate(sum_: tf.Tensor, _) -> tuple[tf.Tensor, tf.Tensor]:
        """Look at the sum tensor and carry 1 in binary."""
        carry_mask = tf.greater_equal(sum_, 1.5)
        carry_deduction = tf.where(carry_mask, -2.0, 0.0)
        carry = tf.where(carry_mask, 1.0, 0.0)
        # The carry out of the top bit is dropped, which makes the sum mod 2^32.
        carry = tf.roll(carry * _NO_CARRY, -1, axis=-1)
        sum_ += carry_deduction + carry
        return sum_, carry

    return tf.while_loop(
        _more_to_carry, _propagate, (sum_, init_carry), name="add32_carry"
    )[0]


@tf.function(reduce_retracing=True)
def add32_2(a, b):
    """Sum the args but within width 32."""
    sum_ = tf.math.add_n((a, b))
    sum_ = _carry(sum_)
    return scale(sum_)


@tf.function(reduce_retracing=True)
def add32_5(a, b, c, d, e):
    """Sum the args but within width 32."""
    sum_ = tf.math.add_n((a, b, c, d, e))
    sum_ = _carry(sum_)
    return scale(sum_)
