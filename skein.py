"""
Simple, pure-Python Skein hash function family.

Skein-256, Skein-512 and Skein-1024 (version 1.3) built on the Threefish
block cipher from threefish.py. Input is absorbed with UBI (Unique Block
Iteration): the cipher is keyed with the running chain value and every
block is encrypted under a tweak that records the position in the stream,
the type of the data and whether it is the first and/or last block.

A hash is computed in three steps:
- Parameter blocks (optional key, configuration, optional personalization,
  public key, key identifier and nonce) are absorbed into a chain value.
- The message is absorbed, block by block, while it streams in.
- The output is squeezed by encrypting a counter under the final chain value.
"""
from typing import List, Optional

from threefish import (
    THREEFISH_256,
    THREEFISH_512,
    THREEFISH_1024,
    Variant,
    bytes_to_words,
    encrypt_words,
    extend_key,
    extend_tweak,
    words_to_bytes,
)


_MASK: int = 0xFFFFFFFFFFFFFFFF

# Type tags, stored in bits 56..61 of the second tweak word
TYPE_KEY: int = 0
TYPE_CONFIG: int = 4
TYPE_PERSONALIZATION: int = 8
TYPE_PUBLIC_KEY: int = 12
TYPE_KEY_ID: int = 16
TYPE_NONCE: int = 20
TYPE_MESSAGE: int = 48
TYPE_OUTPUT: int = 63

# Flags in the second tweak word
FIRST_BLOCK: int = 1 << 62
LAST_BLOCK: int = 1 << 63

# "SHA3", version 1 (u16 little-endian), two reserved bytes
SCHEMA_ID: bytes = b"SHA3\x01\x00\x00\x00"
CONFIG_SIZE: int = 32


class InvalidHashSize(ValueError):
    """The requested digest size is zero, negative or not whole bytes."""


def _inc_tweak(t0: int, t1: int, n: int):
    # The position is 96 bits wide: all of t0 and the low 32 bits of t1.
    t0 += n
    if t0 > _MASK:
        t0 &= _MASK
        t1 = (t1 & ~0xFFFFFFFF) | ((t1 + 1) & 0xFFFFFFFF)
    return t0, t1


def config_block(digest_bits: int) -> bytes:
    """Build the 32-byte configuration parameter block.

    Bytes 0..7 are the schema identifier and version, bytes 8..15 the output
    length in bits. Tree parameters and the reserved tail stay zero.
    """
    c = bytearray(CONFIG_SIZE)
    c[:len(SCHEMA_ID)] = SCHEMA_ID
    c[8:16] = digest_bits.to_bytes(8, 'little')
    return bytes(c)


class UBI:
    """UBI chaining over a Threefish variant.

    The instance holds the chain value, the pending (not yet compressed)
    bytes and the two tweak words. The buffer always keeps the most recent
    block, even a full one, so only finalize() marks a block as the last.
    """

    def __init__(self, variant: Variant, chain: Optional[List[int]] = None) -> None:
        self.variant: Variant = variant
        self._bs: int = variant.block_size
        self.chain: List[int] = list(chain) if chain is not None else [0] * variant.words
        self._buf: bytearray = bytearray()
        self._t0: int = 0
        self._t1: int = 0

    def start(self, ptype: int) -> None:
        """Begin a new UBI pass for data of the given type."""
        self._buf = bytearray()
        self._t0 = 0
        self._t1 = (ptype << 56) | FIRST_BLOCK

    def copy(self) -> "UBI":
        other = UBI(self.variant, self.chain)
        other._buf = bytearray(self._buf)
        other._t0 = self._t0
        other._t1 = self._t1
        return other

    def _compress(self, block: bytes, consumed: int) -> None:
        msg = bytes_to_words(block, self.variant.words)
        # The parity word is derived from the current chain value for every
        # block; the chain changes after each compression.
        key = extend_key(self.chain)
        self._t0, self._t1 = _inc_tweak(self._t0, self._t1, consumed)
        out = encrypt_words(self.variant, key, extend_tweak(self._t0, self._t1), msg)
        # Feed forward the plaintext block
        self.chain = [c ^ m for c, m in zip(out, msg)]
        self._t1 &= ~FIRST_BLOCK & _MASK

    def write(self, data: bytes) -> None:
        """Buffer data and compress every block except the most recent one."""
        self._buf += data
        bs = self._bs
        i = 0
        while len(self._buf) - i > bs:
            self._compress(self._buf[i:i + bs], bs)
            i += bs
        if i:
            del self._buf[:i]

    def finalize(self) -> List[int]:
        """Return the chain value after the last block.

        The work is done on a copy, so the live instance can keep absorbing
        and can be finalized again later. The residual bytes are zero-padded
        to a full block, but the position only advances by the real count.
        An empty pass still compresses one all-zero block.
        """
        s = self.copy()
        residual = len(s._buf)
        block = bytes(s._buf) + bytes(self._bs - residual)
        s._t1 |= LAST_BLOCK
        s._compress(block, residual)
        return s.chain

    def absorb(self, ptype: int, data: bytes) -> None:
        """Run one complete UBI pass over a parameter block."""
        self.start(ptype)
        self.write(data)
        self.chain = self.finalize()
        self._buf = bytearray()


def output(variant: Variant, chain: List[int], size: int) -> bytes:
    """Squeeze size bytes out of a final chain value.

    Block i is the encryption of the 8-byte counter i (zero-extended to a
    full block) under the output tweak, XORed with that counter block.
    """
    n = variant.words
    tweak = extend_tweak(8, (TYPE_OUTPUT << 56) | FIRST_BLOCK | LAST_BLOCK)
    out = bytearray()
    ctr = 0
    while len(out) < size:
        msg = [ctr] + [0] * (n - 1)
        key = extend_key(chain)
        block = encrypt_words(variant, key, tweak, msg)
        out += words_to_bytes([c ^ m for c, m in zip(block, msg)])
        ctr += 1
    return bytes(out[:size])


class Skein:
    """Streaming Skein hash.

    Simple usage:
      h = Skein512(b"hello").update(b" world")
      out = h.digest()  # 64 bytes by default

    Notes:
    - digest_size (bytes) or digest_bits picks the output length; any
      positive whole number of bytes is allowed, also more than one block.
    - key turns the hash into Skein-MAC; personalization, public_key,
      key_id and nonce are further optional parameter blocks.
    - digest()/sum() do not finalize the instance: you can keep writing
      and ask for a digest again.
    """

    variant: Variant = THREEFISH_512

    def __init__(self, data: bytes = b"", *, digest_size: Optional[int] = None,
                 digest_bits: Optional[int] = None, key: bytes = b"",
                 personalization: bytes = b"", public_key: bytes = b"",
                 key_id: bytes = b"", nonce: bytes = b"") -> None:
        self._size: int = self._digest_size(digest_size, digest_bits)

        # Parameter blocks are absorbed once; the resulting chain value is
        # what reset() goes back to.
        ubi = UBI(self.variant)
        if key:
            ubi.absorb(TYPE_KEY, key)
        ubi.absorb(TYPE_CONFIG, config_block(8 * self._size))
        for ptype, param in ((TYPE_PERSONALIZATION, personalization),
                             (TYPE_PUBLIC_KEY, public_key),
                             (TYPE_KEY_ID, key_id),
                             (TYPE_NONCE, nonce)):
            if param:
                ubi.absorb(ptype, param)
        self._init_chain: List[int] = list(ubi.chain)

        self._ubi: UBI = ubi
        self.reset()
        if data:
            self.write(data)

    def _digest_size(self, digest_size: Optional[int], digest_bits: Optional[int]) -> int:
        if digest_size is not None and digest_bits is not None:
            raise InvalidHashSize("give either digest_size or digest_bits, not both")
        if digest_bits is not None:
            if isinstance(digest_bits, bool) or not isinstance(digest_bits, int) or digest_bits <= 0 or digest_bits % 8:
                raise InvalidHashSize("digest_bits must be a positive multiple of 8, got %r" % (digest_bits,))
            return digest_bits // 8
        if digest_size is None:
            return self.variant.block_size
        if isinstance(digest_size, bool) or not isinstance(digest_size, int) or digest_size <= 0:
            raise InvalidHashSize("digest_size must be a positive number of bytes, got %r" % (digest_size,))
        return digest_size

    @property
    def digest_size(self) -> int:
        return self._size

    @property
    def block_size(self) -> int:
        return self.variant.block_size

    @property
    def name(self) -> str:
        return "skein%d-%d" % (8 * self.variant.block_size, 8 * self._size)

    def reset(self) -> None:
        """Go back to the state right after construction (no message)."""
        self._ubi.chain = list(self._init_chain)
        self._ubi.start(TYPE_MESSAGE)

    def write(self, data: bytes) -> int:
        """Absorb message bytes; returns the number of bytes written."""
        self._ubi.write(data)
        return len(data)

    def update(self, data: bytes) -> "Skein":
        """Absorb message bytes. Returns self so calls can be chained."""
        self.write(data)
        return self

    def sum(self, prefix: bytes = b"") -> bytes:
        """Return prefix followed by the digest of everything written so far."""
        chain = self._ubi.finalize()
        return bytes(prefix) + output(self.variant, chain, self._size)

    def digest(self) -> bytes:
        return self.sum()

    def hexdigest(self) -> str:
        return self.digest().hex()

    def copy(self) -> "Skein":
        """Return an independent copy of the current state."""
        other = type(self).__new__(type(self))
        other._size = self._size
        other._init_chain = list(self._init_chain)
        other._ubi = self._ubi.copy()
        return other


class Skein256(Skein):
    variant = THREEFISH_256


class Skein512(Skein):
    variant = THREEFISH_512


class Skein1024(Skein):
    variant = THREEFISH_1024


def skein256(data: bytes, digest_size: int = 32, **params) -> bytes:
    """One-shot Skein-256: hash data and return digest_size bytes."""
    return Skein256(data, digest_size=digest_size, **params).digest()


def skein512(data: bytes, digest_size: int = 64, **params) -> bytes:
    """One-shot Skein-512: hash data and return digest_size bytes."""
    return Skein512(data, digest_size=digest_size, **params).digest()


def skein1024(data: bytes, digest_size: int = 128, **params) -> bytes:
    """One-shot Skein-1024: hash data and return digest_size bytes."""
    return Skein1024(data, digest_size=digest_size, **params).digest()
