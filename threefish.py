"""
Simple, pure-Python Threefish tweakable block cipher.

This module implements Threefish-256, Threefish-512 and Threefish-1024 as
specified in the Skein hash function family paper (version 1.3) using only
Python built-ins. Each variant works on a block of N little-endian 64-bit
words and takes a key of the same size plus a 16-byte tweak.

The goal is clarity over speed. The word-level functions are also used by
the Skein hash in skein.py, which drives the cipher as a compression function.
"""
from dataclasses import dataclass
from typing import List, Sequence, Tuple


# 64-bit mask (all ones)
_MASK: int = 0xFFFFFFFFFFFFFFFF

# Key schedule constant, XORed into the parity word of the extended key
C240: int = 0x1BD11BDAA9FC1A22

# Every variant uses a 128-bit tweak
TWEAK_SIZE: int = 16


class InvalidKeySize(ValueError):
    """The key length does not match the block size of the variant."""


class InvalidTweakSize(ValueError):
    """The tweak is not exactly 16 bytes long."""


# Rotate left / right on a 64-bit word
def _rol(x: int, n: int) -> int:
    return ((x << n) | (x >> (64 - n))) & _MASK


def _ror(x: int, n: int) -> int:
    return ((x >> n) | (x << (64 - n))) & _MASK


@dataclass(frozen=True)
class Variant:
    """Fixed parameters of one Threefish block size."""
    words: int
    rounds: int
    # rotations[d % 8][j] for the j-th MIX of round d
    rotations: Tuple[Tuple[int, ...], ...]
    # after the MIX layer: v[i] = f[permutation[i]]
    permutation: Tuple[int, ...]

    @property
    def block_size(self) -> int:
        return 8 * self.words


THREEFISH_256 = Variant(
    words=4,
    rounds=72,
    rotations=((14, 16), (52, 57), (23, 40), (5, 37),
               (25, 33), (46, 12), (58, 22), (32, 32)),
    permutation=(0, 3, 2, 1),
)

THREEFISH_512 = Variant(
    words=8,
    rounds=72,
    rotations=((46, 36, 19, 37), (33, 27, 14, 42),
               (17, 49, 36, 39), (44, 9, 54, 56),
               (39, 30, 34, 24), (13, 50, 10, 17),
               (25, 29, 39, 43), (8, 35, 56, 22)),
    permutation=(2, 1, 4, 7, 6, 5, 0, 3),
)

THREEFISH_1024 = Variant(
    words=16,
    rounds=80,
    rotations=((24, 13, 8, 47, 8, 17, 22, 37),
               (38, 19, 10, 55, 49, 18, 23, 52),
               (33, 4, 51, 13, 34, 41, 59, 17),
               (5, 20, 48, 41, 47, 28, 16, 25),
               (41, 9, 37, 31, 12, 47, 44, 30),
               (16, 34, 56, 51, 4, 53, 42, 41),
               (31, 44, 47, 46, 19, 42, 44, 25),
               (9, 48, 35, 52, 23, 31, 37, 20)),
    permutation=(0, 9, 2, 13, 6, 11, 4, 15, 10, 7, 12, 3, 14, 5, 8, 1),
)


def bytes_to_words(b: bytes, n: int) -> List[int]:
    """Read n little-endian 64-bit words from the first 8*n bytes of b."""
    return [int.from_bytes(b[8 * i:8 * i + 8], 'little') for i in range(n)]


def words_to_bytes(w: Sequence[int]) -> bytes:
    """Serialize 64-bit words little-endian."""
    return b''.join(v.to_bytes(8, 'little') for v in w)


def extend_key(k: Sequence[int]) -> List[int]:
    """Return the N key words followed by the parity word."""
    parity = C240
    for w in k:
        parity ^= w
    return list(k) + [parity]


def extend_tweak(t0: int, t1: int) -> List[int]:
    """Return the two tweak words followed by their XOR."""
    return [t0, t1, t0 ^ t1]


def _add_subkey(v: List[int], k: Sequence[int], t: Sequence[int], s: int) -> None:
    # Subkey s rotates through all N+1 extended key words; the last three
    # words also take the tweak and the subkey counter.
    n = len(v)
    for i in range(n):
        v[i] = (v[i] + k[(s + i) % (n + 1)]) & _MASK
    v[n - 3] = (v[n - 3] + t[s % 3]) & _MASK
    v[n - 2] = (v[n - 2] + t[(s + 1) % 3]) & _MASK
    v[n - 1] = (v[n - 1] + s) & _MASK


def _sub_subkey(v: List[int], k: Sequence[int], t: Sequence[int], s: int) -> None:
    n = len(v)
    for i in range(n):
        v[i] = (v[i] - k[(s + i) % (n + 1)]) & _MASK
    v[n - 3] = (v[n - 3] - t[s % 3]) & _MASK
    v[n - 2] = (v[n - 2] - t[(s + 1) % 3]) & _MASK
    v[n - 1] = (v[n - 1] - s) & _MASK


def encrypt_words(variant: Variant, k: Sequence[int], t: Sequence[int],
                  block: Sequence[int]) -> List[int]:
    """Encrypt one block of words under an extended key and extended tweak.

    k holds N+1 words (see extend_key) and t holds 3 words (see
    extend_tweak). The input sequence is not modified.

    Steps per round in simple terms:
    - Every fourth round starts by adding a subkey to the whole state.
    - MIX: each pair of words is combined by add, rotate and xor.
    - Permute: the words are shuffled by a fixed permutation.
    One more subkey is added after the last round.
    """
    v = list(block)
    half = variant.words // 2
    perm = variant.permutation
    for d in range(variant.rounds):
        if d % 4 == 0:
            _add_subkey(v, k, t, d // 4)
        r = variant.rotations[d % 8]
        for j in range(half):
            x0 = (v[2 * j] + v[2 * j + 1]) & _MASK
            v[2 * j + 1] = _rol(v[2 * j + 1], r[j]) ^ x0
            v[2 * j] = x0
        v = [v[p] for p in perm]
    _add_subkey(v, k, t, variant.rounds // 4)
    return v


def decrypt_words(variant: Variant, k: Sequence[int], t: Sequence[int],
                  block: Sequence[int]) -> List[int]:
    """Inverse of encrypt_words: runs the rounds backwards."""
    v = list(block)
    half = variant.words // 2
    perm = variant.permutation
    _sub_subkey(v, k, t, variant.rounds // 4)
    for d in reversed(range(variant.rounds)):
        # Undo the permutation
        f = [0] * variant.words
        for i, p in enumerate(perm):
            f[p] = v[i]
        v = f
        # Undo MIX: un-xor, rotate back, then subtract
        r = variant.rotations[d % 8]
        for j in range(half):
            x1 = _ror(v[2 * j + 1] ^ v[2 * j], r[j])
            v[2 * j] = (v[2 * j] - x1) & _MASK
            v[2 * j + 1] = x1
        if d % 4 == 0:
            _sub_subkey(v, k, t, d // 4)
    return v


class Threefish:
    """Threefish block cipher bound to one key and one tweak.

    Use one of the concrete variants:
      c = Threefish512(key, tweak)
      c.encrypt(buf, buf)   # in place
      c.decrypt(buf, buf)

    dst must be a writable buffer (bytearray or memoryview) of exactly one
    block; it may be the same object as src.
    """

    variant: Variant = THREEFISH_512

    def __init__(self, key: bytes, tweak: bytes) -> None:
        bs = self.variant.block_size
        if len(key) != bs:
            raise InvalidKeySize(
                "%s requires a %d byte key, got %d bytes" % (type(self).__name__, bs, len(key)))
        if len(tweak) != TWEAK_SIZE:
            raise InvalidTweakSize(
                "tweak must be %d bytes, got %d bytes" % (TWEAK_SIZE, len(tweak)))
        self._key: List[int] = extend_key(bytes_to_words(key, self.variant.words))
        self._tweak: List[int] = extend_tweak(*bytes_to_words(tweak, 2))

    @property
    def block_size(self) -> int:
        return self.variant.block_size

    def encrypt(self, dst, src) -> None:
        """Encrypt exactly one block from src into dst."""
        bs = self.variant.block_size
        assert len(src) == bs and len(dst) == bs, "src and dst must be one block"
        # The whole source block is read before dst is written, so the
        # two buffers may overlap.
        v = encrypt_words(self.variant, self._key, self._tweak,
                          bytes_to_words(src, self.variant.words))
        dst[:] = words_to_bytes(v)

    def decrypt(self, dst, src) -> None:
        """Decrypt exactly one block from src into dst."""
        bs = self.variant.block_size
        assert len(src) == bs and len(dst) == bs, "src and dst must be one block"
        v = decrypt_words(self.variant, self._key, self._tweak,
                          bytes_to_words(src, self.variant.words))
        dst[:] = words_to_bytes(v)


class Threefish256(Threefish):
    variant = THREEFISH_256


class Threefish512(Threefish):
    variant = THREEFISH_512


class Threefish1024(Threefish):
    variant = THREEFISH_1024
