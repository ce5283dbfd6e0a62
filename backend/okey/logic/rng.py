"""
Random number generation for deck shuffling.

Uses PCG64DXSM (Permuted Congruential Generator with DXSM output function):
1. Generate a cryptographic seed (96 bytes) via the secrets module
2. Derive the match RNG state via SHA512 with a versioned domain prefix
3. Use PCG64DXSM to generate random uint64 values
4. Apply a Fisher-Yates shuffle with rejection sampling for an unbiased permutation

Both deck shuffle passes (numbered tiles, then the full deck with jokers)
consume the same stream, so one seed fully determines a match's deal.

Reference: O'Neill, M. (2014). "PCG: A Family of Simple Fast Space-Efficient
Statistically Good Algorithms for Random Number Generation."
"""

import hashlib
import secrets

SEED_BYTES = 96
_DECK_DOMAIN_PREFIX = b"okey-deck-v1:"

# PCG64DXSM constants
_PCG_MULTIPLIER = 0x2360ED051FC65DA44385DF649FCCF645
_PCG_DXSM_MUL = 0xDA942042E4DD58B5
_UINT128_MASK = (1 << 128) - 1
_UINT64_MASK = (1 << 64) - 1


def validate_seed_hex(seed_hex: str) -> None:
    """Check that a seed is a 192-character hex string.

    Raises TypeError for non-string input, ValueError for invalid format.
    """
    if not isinstance(seed_hex, str):
        raise TypeError(f"Seed must be a string, got {type(seed_hex).__name__}")
    expected_length = SEED_BYTES * 2
    if len(seed_hex) != expected_length:
        raise ValueError(f"Seed must be exactly {expected_length} hex characters, got {len(seed_hex)}")
    try:
        bytes.fromhex(seed_hex)
    except ValueError:
        raise ValueError("Seed contains invalid hex characters") from None


class PCG64DXSM:
    """
    Pure Python PCG64DXSM generator.

    128-bit LCG state with the DXSM output permutation, same constants as
    NumPy's PCG64DXSM bit generator.
    """

    def __init__(self, state: int, increment: int) -> None:
        self._inc = ((increment << 1) | 1) & _UINT128_MASK  # increment must be odd
        self._state = (state + self._inc) & _UINT128_MASK
        # two advances away from a weak initial state
        self._state = (self._state * _PCG_MULTIPLIER + self._inc) & _UINT128_MASK
        self._state = (self._state * _PCG_MULTIPLIER + self._inc) & _UINT128_MASK

    def next_uint64(self) -> int:
        """Return the next 64-bit output and advance the state."""
        state = self._state
        hi = (state >> 64) & _UINT64_MASK
        lo = (state & _UINT64_MASK) | 1

        hi ^= hi >> 32
        hi = (hi * _PCG_DXSM_MUL) & _UINT64_MASK
        hi ^= hi >> 48
        hi = (hi * lo) & _UINT64_MASK

        self._state = (state * _PCG_MULTIPLIER + self._inc) & _UINT128_MASK
        return hi


def generate_seed() -> str:
    """Generate a cryptographic seed as a hex string (192 chars)."""
    return secrets.token_bytes(SEED_BYTES).hex()


def create_deck_rng(seed_hex: str) -> PCG64DXSM:
    """
    Derive the deck generator for a match.

    SHA512(domain prefix + seed) gives 64 bytes: the first 16 become the PCG
    state, the next 16 the increment.
    """
    validate_seed_hex(seed_hex)
    derived = hashlib.sha512(_DECK_DOMAIN_PREFIX + bytes.fromhex(seed_hex)).digest()
    state = int.from_bytes(derived[:16], byteorder="little")
    increment = int.from_bytes(derived[16:32], byteorder="little")
    return PCG64DXSM(state, increment)


def bounded_random(pcg: PCG64DXSM, bound: int) -> int:
    """
    Unbiased integer in [0, bound) via rejection sampling.
    """
    if bound <= 0 or bound > (1 << 64):
        raise ValueError("bound must be in (0, 2^64]")
    limit = (1 << 64) - ((1 << 64) % bound)
    while True:
        r = pcg.next_uint64()
        if r < limit:
            return r % bound


def shuffle_tiles(tiles: list[int], pcg: PCG64DXSM) -> list[int]:
    """
    Fisher-Yates shuffle; returns a new list and leaves the input untouched.

    For i in 0..n-2: swap tiles[i] with tiles[i + bounded_random(n - i)]
    """
    n = len(tiles)
    result = list(tiles)
    for i in range(n - 1):
        j = i + bounded_random(pcg, n - i)
        result[i], result[j] = result[j], result[i]
    return result
