"""Incremental SHA-0 Hasher.

SHA-0 was withdrawn shortly after publication and practical collisions are
known. Do not use it for integrity checks, signatures or anything else that
relies on collision resistance.

Example::

    hasher = Sha0()
    hasher.update(b"hello ")
    hasher.update(b"world")
    digest = hasher.finalize()
"""

import logging
import numbers
from typing import Callable, Optional, Sequence

from tf_sha0 import constants, native

logger = logging.getLogger(__name__)
logger.setLevel(logging.DEBUG)
logger.addHandler(logging.NullHandler())

LENGTH_MASK = (1 << 64) - 1

Compressor = Callable[[Sequence[int], bytes], Sequence[int]]


class HasherFinalizedError(RuntimeError):
    """Raised when a hasher is used after :meth:`Sha0.finalize`."""


def padding_bytes(bit_length: int) -> bytes:
    """Pad a message of ``bit_length`` bits to a multiple of 64 bytes.

    The length suffix is the bit count modulo 2^64, so messages beyond the
    algorithm's domain wrap rather than fail.
    """
    zero_bytes = (55 - bit_length // 8) % constants.BLOCK_SIZE
    encoded_bit_length = (bit_length & LENGTH_MASK).to_bytes(8, "big")
    return b"\x80" + b"\0" * zero_bytes + encoded_bit_length


def render_hex(state: Sequence[int]) -> str:
    """Render state words as a lowercase hex digest."""
    return "".join(f"{word:08x}" for word in state)


class Sha0:
    """Incremental SHA-0 hasher.

    A hasher is single use: :meth:`finalize` consumes it. Instances share no
    state, but a single instance must not be updated from several threads at
    once.

    Args:
        data: optional first chunk to feed to :meth:`update`.
        compress_fn: block compressor taking ``(state, block)``. Defaults to
            :func:`tf_sha0.native.compress_block`;
            :func:`tf_sha0.sha0.compress_words` runs the TensorFlow graph.
    """

    def __init__(self, data=None, compress_fn: Optional[Compressor] = None):
        self._state = tuple(constants.IV)
        self._pending = bytearray()
        self._bit_length = 0
        self._blocks = 0
        self._finalized = False
        self._compress = compress_fn or native.compress_block
        if data is not None:
            self.update(data)

    @classmethod
    def new(cls, compress_fn: Optional[Compressor] = None) -> "Sha0":
        """Create a fresh hasher."""
        return cls(compress_fn=compress_fn)

    @property
    def bit_length(self) -> int:
        return self._bit_length

    @property
    def finalized(self) -> bool:
        return self._finalized

    def update(self, data) -> "Sha0":
        """Feed ``data`` into the hasher."""
        self._check_live()
        if isinstance(data, str):
            raise TypeError("Strings must be encoded before hashing")
        if isinstance(data, numbers.Integral) or (
            hasattr(data, "__index__") and not hasattr(data, "__len__")
        ):
            raise TypeError("Expected bytes or a sequence of byte values")
        data = bytes(data)
        self._pending += data
        self._bit_length += 8 * len(data)
        self._drain()
        return self

    def finalize(self) -> str:
        """Pad, compress the last block(s) and return the hex digest."""
        self._check_live()
        self._finalized = True
        self._pending += padding_bytes(self._bit_length)
        self._drain()
        assert not self._pending
        logger.debug(
            "Finalized SHA-0 over %d bits in %d block(s)",
            self._bit_length,
            self._blocks,
        )
        return render_hex(self._state)

    def _drain(self):
        while len(self._pending) >= constants.BLOCK_SIZE:
            block = bytes(self._pending[: constants.BLOCK_SIZE])
            self._state = tuple(self._compress(self._state, block))
            del self._pending[: constants.BLOCK_SIZE]
            self._blocks += 1

    def _check_live(self):
        if self._finalized:
            raise HasherFinalizedError("SHA-0 hasher has already been finalized")


def sha0_hex(data) -> str:
    """One-shot SHA-0 hex digest of ``data``."""
    return Sha0(data).finalize()
