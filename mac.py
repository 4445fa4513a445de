import typing

from cryptography.exceptions import AlreadyFinalized, InvalidSignature
from cryptography.hazmat.primitives import constant_time

from skein import Skein, Skein512


# Skein-MAC: the secret key is absorbed as the first parameter block, so
# the MAC is just a keyed Skein hash. The API mirrors
# cryptography.hazmat.primitives.hmac.HMAC.
class SkeinMAC:
    def __init__(self, key: bytes, algorithm: typing.Type[Skein] = Skein512,
                 digest_size: typing.Optional[int] = None, _ctx: typing.Optional[Skein] = None):
        if not key:
            raise ValueError("Skein-MAC needs a non-empty key")
        self._key = key
        self.algorithm = algorithm
        if _ctx is None:
            _ctx = algorithm(key=key, digest_size=digest_size)
        self._ctx = _ctx

    @property
    def digest_size(self) -> int:
        return self._check()._ctx.digest_size

    def _check(self) -> "SkeinMAC":
        if self._ctx is None:
            raise AlreadyFinalized("Context was already finalized.")
        return self

    def update(self, data: bytes) -> None:
        self._check()._ctx.update(data)

    def copy(self) -> "SkeinMAC":
        return SkeinMAC(self._key, self.algorithm, _ctx=self._check()._ctx.copy())

    def finalize(self) -> bytes:
        tag = self._check()._ctx.digest()
        self._ctx = None
        return tag

    def verify(self, signature: bytes) -> None:
        tag = self.finalize()
        if not constant_time.bytes_eq(tag, signature):
            raise InvalidSignature("Signature did not match digest.")


def skein_mac(key: bytes, data: bytes, algorithm: typing.Type[Skein] = Skein512,
              digest_size: typing.Optional[int] = None) -> bytes:
    """One-shot Skein-MAC over data."""
    m = SkeinMAC(key, algorithm, digest_size)
    m.update(data)
    return m.finalize()
