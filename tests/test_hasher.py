import hashlib
import re

import numpy as np
import pytest

from tests import sha0
from tf_sha0 import constants, native
from tf_sha0.hasher import HasherFinalizedError, Sha0, padding_bytes, sha0_hex

KNOWN_ANSWERS = [
    (b"", "f96cea198ad1dd5617ac084a3d92c6107708c0ef"),
    (b"abc", "0164b8a914cd2a5e74c4f7ff082c4d97f1edf880"),
    (
        b"The quick brown fox jumps over the lazy dog",
        "b03b401ba92d77666221e843feebf8c561cea5f7",
    ),
]

BOUNDARY_LENGTHS = [0, 1, 55, 56, 57, 63, 64, 65, 119, 120, 128]


@pytest.fixture(autouse=True)
def _seed():
    np.random.seed(0)


def _random_bytes(n: int) -> bytes:
    return np.random.randint(0, 256, size=n, dtype=np.uint8).tobytes()


@pytest.mark.parametrize("message,expected", KNOWN_ANSWERS)
def test_known_answers(message, expected):
    hasher = Sha0.new()
    hasher.update(message)
    assert hasher.finalize() == expected


@pytest.mark.parametrize("message,expected", KNOWN_ANSWERS)
def test_reference_known_answers(message, expected):
    assert sha0.sha0(message)[0].hex() == expected


@pytest.mark.parametrize("length", BOUNDARY_LENGTHS)
def test_reference_with_rotation_is_sha1(length):
    message = _random_bytes(length)
    rotated = sha0.sha0(message, rotate_schedule=True)[0]
    assert rotated == hashlib.sha1(message).digest()


@pytest.mark.parametrize("length", BOUNDARY_LENGTHS)
def test_block_boundaries(length):
    message = _random_bytes(length)
    assert sha0_hex(message) == sha0.sha0(message)[0].hex()


@pytest.mark.parametrize("message,_", KNOWN_ANSWERS)
def test_differs_from_sha1(message, _):
    assert sha0_hex(message) != hashlib.sha1(message).hexdigest()


def test_incremental_equivalence_every_split():
    message = _random_bytes(150)
    expected = sha0_hex(message)
    for split in range(len(message) + 1):
        hasher = Sha0()
        hasher.update(message[:split])
        hasher.update(message[split:])
        assert hasher.finalize() == expected


def test_incremental_equivalence_many_chunks():
    message = _random_bytes(1000)
    hasher = Sha0()
    i = 0
    for size in [0, 1, 63, 0, 64, 65, 7, 200, 3]:
        hasher.update(message[i : i + size])
        i += size
    hasher.update(message[i:])
    assert hasher.finalize() == sha0.sha0(message)[0].hex()


def test_byte_at_a_time():
    message = _random_bytes(130)
    hasher = Sha0()
    for byte in message:
        hasher.update(bytes([byte]))
    assert hasher.finalize() == sha0_hex(message)


def test_update_is_order_sensitive():
    a, b = b"first chunk", b"second chunk"
    assert Sha0(a).update(b).finalize() != Sha0(b).update(a).finalize()


def test_determinism():
    message = _random_bytes(200)
    assert sha0_hex(message) == sha0_hex(message)


@pytest.mark.parametrize("length", BOUNDARY_LENGTHS + [1000])
def test_digest_shape(length):
    digest = sha0_hex(_random_bytes(length))
    assert len(digest) == 2 * constants.DIGEST_SIZE
    assert re.fullmatch("[0-9a-f]{40}", digest)


def test_bytes_like_inputs():
    expected = sha0_hex(b"abc")
    assert sha0_hex(bytearray(b"abc")) == expected
    assert sha0_hex(memoryview(b"abc")) == expected
    assert sha0_hex([0x61, 0x62, 0x63]) == expected


@pytest.mark.parametrize("bad", ["abc", 3, np.int64(3), np.uint8(1)])
def test_rejects_non_bytes(bad):
    with pytest.raises(TypeError):
        Sha0().update(bad)


def test_bit_length_and_pending_buffer():
    hasher = Sha0()
    for size in [10, 60, 64, 1]:
        hasher.update(b"\x01" * size)
        assert len(hasher._pending) < constants.BLOCK_SIZE
    assert hasher.bit_length == 8 * 135


def test_finalize_consumes():
    hasher = Sha0(b"abc")
    hasher.finalize()
    assert hasher.finalized
    with pytest.raises(HasherFinalizedError):
        hasher.update(b"more")
    with pytest.raises(HasherFinalizedError):
        hasher.finalize()


def test_padding_bytes():
    for length in range(0, 130):
        padding = padding_bytes(8 * length)
        assert (length + len(padding)) % 64 == 0
        assert padding[0] == 0x80
        assert padding[-8:] == (8 * length).to_bytes(8, "big")
    assert len(padding_bytes(8 * 55)) == 9
    assert len(padding_bytes(8 * 56)) == 72


def test_padding_length_wraps_at_64_bits():
    assert padding_bytes((1 << 64) + 8)[-8:] == (8).to_bytes(8, "big")


def test_native_schedule_has_no_rotation():
    block = _random_bytes(64)
    w = native.message_schedule_array(block)
    assert w == sha0.message_schedule_array(block)
    assert w != sha0.message_schedule_array(block, rotate_schedule=True)


def test_native_compress_block():
    block = _random_bytes(64)
    assert list(native.compress_block(constants.IV, block)) == sha0._compress_block(
        sha0.IV, block
    )


def test_native_compress_rejects_short_block():
    with pytest.raises(AssertionError):
        native.compress_block(constants.IV, b"\0" * 63)


def test_custom_compressor_sees_each_block():
    seen = []

    def compress(state, block):
        seen.append(block)
        return native.compress_block(state, block)

    message = _random_bytes(130)
    digest = Sha0(message, compress_fn=compress).finalize()
    assert digest == sha0_hex(message)
    assert b"".join(seen[:2]) == message[:128]
    assert len(seen) == 3


def test_failed_compression_keeps_block_pending():
    def compress(state, block):
        raise ValueError("compressor failed")

    hasher = Sha0(compress_fn=compress)
    with pytest.raises(ValueError):
        hasher.update(b"\x01" * 64)
    assert bytes(hasher._pending) == b"\x01" * 64
    assert hasher.bit_length == 512
    assert hasher._state == tuple(constants.IV)

    hasher._compress = native.compress_block
    hasher.update(b"")
    assert hasher.finalize() == sha0_hex(b"\x01" * 64)
