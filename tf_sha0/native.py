"""Word-based SHA-0 Block Compression."""

from typing import Sequence

from tf_sha0 import constants

MASK32 = 0xFFFFFFFF


def add32(*args):
    """Sum the args but within width 32."""
    return sum(args) % (2**32)


def leftrotate32(x, n):
    """Left rotate at width 32."""
    return ((x << n) | (x >> (32 - n))) & MASK32


def choice(x, y, z):
    """Choice between y and z with x."""
    return (x & y) | (~x & z)


def parity(x, y, z):
    """Parity of x, y and z."""
    return x ^ y ^ z


def majority(x, y, z):
    """Majority among x, y and z."""
    return (x & y) | (x & z) | (y & z)


_STAGE_FUNCTIONS = {
    "choice": choice,
    "parity": parity,
    "majority": majority,
}
ROUND_FUNCTIONS = [_STAGE_FUNCTIONS[name] for name in constants.STAGE_FUNCTIONS]


def message_schedule_array(block: bytes) -> list[int]:
    """Compute the message schedule array.

    Unlike SHA-1, the expanded words are not rotated.
    """
    assert len(block) == constants.BLOCK_SIZE
    w = [int.from_bytes(block[4 * i : 4 * i + 4], "big") for i in range(16)]
    for t in range(16, constants.ROUNDS):
        w.append(w[t - 3] ^ w[t - 8] ^ w[t - 14] ^ w[t - 16])
    return w


def round_(state, round_number, schedule_word):
    """Round state given the round number and schedule word."""
    a, b, c, d, e = state
    f = ROUND_FUNCTIONS[round_number // constants.STAGE_ROUNDS](b, c, d)
    temp = add32(
        leftrotate32(a, 5), f, e, constants.ROUND_CONSTANTS[round_number], schedule_word
    )
    return (temp, a, leftrotate32(b, 30), c, d)


def compress_block(state: Sequence[int], block: bytes) -> tuple[int, ...]:
    """Compress one 64-byte block into the 5-word state."""
    w = message_schedule_array(block)
    words = tuple(state)
    for round_number in range(constants.ROUNDS):
        words = round_(words, round_number, w[round_number])
    return tuple(add32(x, y) for x, y in zip(state, words))
