"""SHA-0 Constants."""

BIT_WIDTH = 32
BLOCK_SIZE = 64
DIGEST_SIZE = 20
ROUNDS = 80
STAGE_ROUNDS = 20

IV = [
    0x67452301,
    0xEFCDAB89,
    0x98BADCFE,
    0x10325476,
    0xC3D2E1F0,
]

STAGE_CONSTANTS = [
    0x5A827999,
    0x6ED9EBA1,
    0x8F1BBCDC,
    0xCA62C1D6,
]

# Round function used in each 20-round stage.
STAGE_FUNCTIONS = ["choice", "parity", "majority", "parity"]

ROUND_CONSTANTS = [k for k in STAGE_CONSTANTS for _ in range(STAGE_ROUNDS)]
