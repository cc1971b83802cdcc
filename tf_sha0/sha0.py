"""Bit-based SHA0 Hash Algorithm.

Every 32-bit word is a float32 tensor of 32 bits, most significant bit
first. SHA-0 is broken for collision resistance and must not be used for
integrity checks or signatures.
"""

import logging
from typing import Sequence

import numpy as np
import tensorflow as tf

from tf_sha0 import add32, constants

logger = logging.getLogger(__name__)
logger.setLevel(logging.DEBUG)
logger.addHandler(logging.NullHandler())

BIT_WIDTH = constants.BIT_WIDTH
BLOCK_WIDTH = constants.BLOCK_SIZE * 8
STATE_SIZE = len(constants.IV)


@tf.function(
    input_signature=(
        tf.TensorSpec(shape=[None], dtype=tf.float32),
        tf.TensorSpec(shape=[], dtype=tf.int32),
    )
)
def tile_batch(vec, batch_size) -> tf.Tensor:
    """Tile the vector with a batch dimension."""
    vec = tf.expand_dims(vec, axis=0)
    vec = tf.tile(vec, [batch_size, 1])
    return vec


@tf.function(reduce_retracing=True)
def leftrotate32(x, n):
    """Left rotate at width 32."""
    return tf.roll(x, -n, axis=-1)


@tf.function(reduce_retracing=True)
def bitwise_not(a) -> tf.Tensor:
    """Bitwise NOT for binary tensors."""
    return 1.0 - a


@tf.function(reduce_retracing=True)
def bitwise_or(a, b) -> tf.Tensor:
    """Bitwise OR for binary tensors."""
    return add32.scale(a + b)


@tf.function(reduce_retracing=True)
def bitwise_and(a, b) -> tf.Tensor:
    """Bitwise AND for binary tensors."""
    return add32.scale(a * b)


@tf.function(reduce_retracing=True)
def bitwise_xor(a, b) -> tf.Tensor:
    """Bitwise XOR for binary tensors."""
    xor = bitwise_or(a, b) - bitwise_and(a, b)
    return add32.scale(xor)


@tf.function(reduce_retracing=True)
def choice(x, y, z) -> tf.Tensor:
    """Choice between y and z with x."""
    return bitwise_or(bitwise_and(x, y), bitwise_and(bitwise_not(x), z))


@tf.function(reduce_retracing=True)
def parity(x, y, z) -> tf.Tensor:
    """Parity of x, y and z."""
    return bitwise_xor(bitwise_xor(x, y), z)


@tf.function(reduce_retracing=True)
def majority(x, y, z) -> tf.Tensor:
    """Majority among x, y and z."""
    return bitwise_or(
        bitwise_or(bitwise_and(x, y), bitwise_and(x, z)), bitwise_and(y, z)
    )


def _extend_schedule(w, name):
    """Grow ``w`` from 16 to 80 words along axis 0."""

    def c(idx, _):
        return tf.less(idx, constants.ROUNDS)

    def b(idx, w_):
        # No rotation here: this is the one place SHA-0 differs from SHA-1.
        w_i_new = bitwise_xor(
            bitwise_xor(w_[idx - 3], w_[idx - 8]),
            bitwise_xor(w_[idx - 14], w_[idx - 16]),
        )
        return idx + 1, tf.concat([w_, tf.expand_dims(w_i_new, axis=0)], axis=0)

    return tf.while_loop(
        c,
        b,
        [tf.constant(16), w],
        shape_invariants=[
            tf.TensorShape([]),
            tf.TensorShape([None]).concatenate(w.shape[1:]),
        ],
        parallel_iterations=1,
        name=name,
    )[1]


@tf.function(input_signature=(tf.TensorSpec(shape=[BLOCK_WIDTH], dtype=tf.float32),))
def message_schedule_array(block) -> tf.Tensor:
    """Compute the message schedule array."""
    w = tf.reshape(block, shape=(16, BIT_WIDTH))
    return _extend_schedule(w, "message_schedule_array_while_loop")


@tf.function(
    input_signature=(tf.TensorSpec(shape=[None, BLOCK_WIDTH], dtype=tf.float32),)
)
def message_schedule_array_batch(block) -> tf.Tensor:
    """Compute the message schedule array."""
    w = tf.transpose(
        tf.reshape(block, shape=(tf.shape(block)[0], 16, BIT_WIDTH)), perm=[1, 0, 2]
    )
    return _extend_schedule(w, "message_schedule_array_batch_while_loop")


def _int_constants_to_tensors(constants_: Sequence[int], name: str) -> tf.Tensor:
    tensors = []
    for c in constants_:
        c_array = np.zeros((BIT_WIDTH,))
        for idx in range(BIT_WIDTH):
            c_array[idx] = c % 2
            c //= 2
        c_array = c_array[::-1]
        tensors.append(c_array)
    tensors = np.vstack(tensors)
    return tf.constant(tensors, dtype=tf.float32, name=name)


def _stage_selectors() -> tf.Tensor:
    names = ["choice", "parity", "majority"]
    rows = []
    for name in constants.STAGE_FUNCTIONS:
        rows.extend([[float(name == n) for n in names]] * constants.STAGE_ROUNDS)
    return tf.constant(rows, dtype=tf.float32, name="ROUND_SELECTORS")


ROUND_TENSORS = _int_constants_to_tensors(constants.ROUND_CONSTANTS, "ROUND_CONSTANTS")
ROUND_SELECTORS = _stage_selectors()
IV_TENSORS = _int_constants_to_tensors(constants.IV, "IV")


def _round(state, round_constant, round_selector, schedule_word):
    a, b, c, d, e = tf.unstack(state, num=STATE_SIZE, axis=0)
    # Exactly one selector entry is 1, so the weighted sum stays binary.
    f = (
        round_selector[0] * choice(b, c, d)
        + round_selector[1] * parity(b, c, d)
        + round_selector[2] * majority(b, c, d)
    )
    round_constant = tf.broadcast_to(round_constant, tf.shape(a))
    temp = add32.add32_5(leftrotate32(a, 5), f, e, round_constant, schedule_word)
    return tf.stack([temp, a, leftrotate32(b, 30), c, d], axis=0)


@tf.function(
    input_signature=(
        tf.TensorSpec(shape=[STATE_SIZE, BIT_WIDTH], dtype=tf.float32),
        tf.TensorSpec(shape=[BIT_WIDTH], dtype=tf.float32),
        tf.TensorSpec(shape=[3], dtype=tf.float32),
        tf.TensorSpec(shape=[BIT_WIDTH], dtype=tf.float32),
    )
)
def round_(state, round_constant, round_selector, schedule_word) -> tf.Tensor:
    """Round state given the constant, function selector and schedule word."""
    return _round(state, round_constant, round_selector, schedule_word)


@tf.function(
    input_signature=(
        tf.TensorSpec(shape=[STATE_SIZE, None, BIT_WIDTH], dtype=tf.float32),
        tf.TensorSpec(shape=[BIT_WIDTH], dtype=tf.float32),
        tf.TensorSpec(shape=[3], dtype=tf.float32),
        tf.TensorSpec(shape=[None, BIT_WIDTH], dtype=tf.float32),
    )
)
def round_batch(state, round_constant, round_selector, schedule_word) -> tf.Tensor:
    """Round state given the constant, function selector and schedule word."""
    return _round(state, round_constant, round_selector, schedule_word)


def _compress_step(state_words, round_params):
    round_constant, round_selector, schedule_word = round_params
    return _round(state_words, round_constant, round_selector, schedule_word)


@tf.function(
    input_signature=(
        tf.TensorSpec(shape=[STATE_SIZE, BIT_WIDTH], dtype=tf.float32),
        tf.TensorSpec(shape=[BLOCK_WIDTH], dtype=tf.float32),
    )
)
def compress_block(input_state_words, block) -> tf.Tensor:
    """Compress an input block."""
    w = message_schedule_array(block)

    state_words = tf.foldl(
        _compress_step,
        (ROUND_TENSORS, ROUND_SELECTORS, w),
        input_state_words,
        name="compress_block_foldl",
    )
    return add32.add32_2(input_state_words, state_words)


@tf.function(
    input_signature=(
        tf.TensorSpec(shape=[STATE_SIZE, None, BIT_WIDTH], dtype=tf.float32),
        tf.TensorSpec(shape=[None, BLOCK_WIDTH], dtype=tf.float32),
    )
)
def compress_block_batch(input_state_words, block) -> tf.Tensor:
    """Compress a batch of input blocks."""
    w = message_schedule_array_batch(block)

    state_words = tf.foldl(
        _compress_step,
        (ROUND_TENSORS, ROUND_SELECTORS, w),
        input_state_words,
        name="compress_block_batch_foldl",
    )
    return add32.add32_2(input_state_words, state_words)


@tf.function(
    input_signature=(
        tf.TensorSpec(shape=[], dtype=tf.uint64),
        tf.TensorSpec(shape=[], dtype=tf.int32),
    )
)
def int2bebits(value, width) -> tf.Tensor:
    """Integer to ``width`` bytes of big-endian bits."""
    shifts = tf.range(width * 8, dtype=tf.int64)
    shifts = tf.cast(shifts, dtype=tf.uint64)[::-1]
    factors = tf.bitwise.left_shift(tf.ones_like(shifts, dtype=tf.uint64), shifts)
    bits = tf.cast(tf.bitwise.bitwise_and(value, factors), dtype=tf.float64) / tf.cast(
        factors, dtype=tf.float64
    )
    return tf.cast(bits, dtype=tf.float32)


@tf.function(input_signature=(tf.TensorSpec(shape=[], dtype=tf.int32),))
def padding_bits(input_len) -> tf.Tensor:
    """Padding bits for a message of ``input_len`` bytes."""
    remainder_bytes = (input_len + 8) % 64
    filler_bytes = 64 - remainder_bytes
    zero_bytes = filler_bytes - 1
    input_bits_len = tf.cast(8 * tf.cast(input_len, tf.int64), dtype=tf.uint64)
    encoded_bit_length = int2bebits(input_bits_len, tf.constant(8))
    prefix = tf.constant([1] + [0] * 7, dtype=tf.float32)
    zeros = tf.zeros([8 * zero_bytes], dtype=tf.float32)
    return tf.concat([prefix, zeros, encoded_bit_length], axis=0)


@tf.function
def _compress_block_step(state_words_, block):
    return tf.ensure_shape(
        compress_block(state_words_, block), [STATE_SIZE, BIT_WIDTH]
    )


@tf.function(input_signature=(tf.TensorSpec(shape=[None], dtype=tf.float32),))
def sha0(message) -> tf.Tensor:
    """SHA0 hash for byte-aligned bit tensors."""
    msg_len = tf.shape(message)[0]
    padding = padding_bits(msg_len // 8)
    padded = tf.concat([message, padding], axis=0)
    padded = tf.reshape(padded, (-1, BLOCK_WIDTH))

    state_words = tf.foldl(
        _compress_block_step,
        padded,
        IV_TENSORS,
        parallel_iterations=1,
        name="sha0_foldl",
    )
    return tf.concat(tf.unstack(state_words, axis=0), axis=0)


@tf.function(input_signature=(tf.TensorSpec(shape=[None, None], dtype=tf.float32),))
def sha0_batch(message) -> tf.Tensor:
    """SHA0 hash for a batch of equal-length, byte-aligned bit tensors."""
    msg_len = tf.shape(message)[1]
    padding = padding_bits(msg_len // 8)
    padding = tile_batch(padding, tf.shape(message)[0])
    padded = tf.concat([message, padding], axis=1)

    def c(i, _):
        return tf.less(i, tf.shape(padded)[1])

    def b(i, state_words):
        block = padded[:, i : i + BLOCK_WIDTH]
        state_words = tf.ensure_shape(
            compress_block_batch(state_words, block), [STATE_SIZE, None, BIT_WIDTH]
        )
        i += BLOCK_WIDTH
        return i, state_words

    init_words = IV_TENSORS
    init_words = tf.expand_dims(init_words, axis=1)
    init_words = tf.tile(init_words, [1, tf.shape(message)[0], 1])
    state_words = tf.while_loop(
        c,
        b,
        [tf.constant(0), init_words],
        parallel_iterations=1,
        name="sha0_batch_while_loop",
    )[1]
    return tf.concat(tf.unstack(state_words, axis=0), axis=1)


def bytes_to_bits(data: bytes) -> tf.Tensor:
    """Bytes to a flat big-endian bit tensor."""
    bits = np.unpackbits(np.frombuffer(bytes(data), dtype=np.uint8))
    bits = bits.astype(np.float32)
    return tf.constant(bits, dtype=tf.float32)


def bits_to_bytes(bits) -> bytes:
    """Flat big-endian bit tensor back to bytes."""
    return np.packbits(np.asarray(bits) > 0.5).tobytes()


def tensor_to_words(words) -> tuple[int, ...]:
    """Rows of 32 bits to Python ints."""
    return tuple(int.from_bytes(bits_to_bytes(row), "big") for row in np.asarray(words))


def compress_words(state: Sequence[int], block: bytes) -> tuple[int, ...]:
    """Word-level compressor running on the bit-tensor graph.

    Drop-in replacement for :func:`tf_sha0.native.compress_block`.
    """
    assert len(block) == constants.BLOCK_SIZE
    state_words = _int_constants_to_tensors(state, "state_words")
    return tensor_to_words(compress_block(state_words, bytes_to_bits(block)))
