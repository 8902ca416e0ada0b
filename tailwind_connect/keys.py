"""
Key material for the reference wallet.
"""
import logging
from typing import Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature, encode_dss_signature
)
from cryptography.hazmat.primitives.serialization import (
    Encoding, NoEncryption, PrivateFormat, PublicFormat
)

from .exceptions import UnsupportedAlgorithmError
from .models import Algo

logger = logging.getLogger(__name__)

# Order of the SECP256K1 elliptic curve (N value)
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

# Valid private keys are in [1, N-1]
SECP256K1_MIN = 1
SECP256K1_MAX = SECP256K1_N - 1

SECP256K1_HALF_N = SECP256K1_N // 2

_PrivateKey = Union[ec.EllipticCurvePrivateKey, Ed25519PrivateKey]


class LocalKey:
    """
    A private key held in process.

    secp256k1 keys sign the SHA-256 of the message and produce a 64 byte
    ``r || s`` signature with low S. ed25519 keys sign the message itself.
    Public keys are 33 byte compressed points or 32 raw bytes respectively.
    """

    def __init__(self, algo: Algo, private_key: _PrivateKey):
        self.algo = Algo(algo)
        self._private_key = private_key

    @classmethod
    def generate(cls, algo: Algo = Algo.SECP256K1) -> "LocalKey":
        """
        Generate a fresh key.

        Raises:
            UnsupportedAlgorithmError: For sr25519
        """
        algo = Algo(algo)
        if algo is Algo.SECP256K1:
            return cls(algo, ec.generate_private_key(ec.SECP256K1()))
        if algo is Algo.ED25519:
            return cls(algo, Ed25519PrivateKey.generate())
        raise UnsupportedAlgorithmError(f"{algo.value} keys are not supported by the local wallet")

    @classmethod
    def from_private_bytes(cls, algo: Algo, data: bytes) -> "LocalKey":
        """
        Load a key from its 32 raw private bytes.

        Raises:
            ValueError: If the bytes are not a valid key
            UnsupportedAlgorithmError: For sr25519
        """
        algo = Algo(algo)
        if len(data) != 32:
            raise ValueError(f"Private key must be 32 bytes, got {len(data)}")
        if algo is Algo.SECP256K1:
            secret = int.from_bytes(data, byteorder="big")
            if not SECP256K1_MIN <= secret <= SECP256K1_MAX:
                raise ValueError("Private key is outside the secp256k1 range")
            return cls(algo, ec.derive_private_key(secret, ec.SECP256K1()))
        if algo is Algo.ED25519:
            return cls(algo, Ed25519PrivateKey.from_private_bytes(data))
        raise UnsupportedAlgorithmError(f"{algo.value} keys are not supported by the local wallet")

    @property
    def public_bytes(self) -> bytes:
        if self.algo is Algo.SECP256K1:
            return self._private_key.public_key().public_bytes(
                Encoding.X962, PublicFormat.CompressedPoint
            )
        return self._private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)

    def private_bytes(self) -> bytes:
        if self.algo is Algo.SECP256K1:
            return self._private_key.private_numbers().private_value.to_bytes(32, "big")
        return self._private_key.private_bytes(
            encoding=Encoding.Raw,
            format=PrivateFormat.Raw,
            encryption_algorithm=NoEncryption()
        )

    def sign(self, message: bytes) -> bytes:
        """Sign ``message`` and return the 64 byte signature"""
        if self.algo is Algo.ED25519:
            return self._private_key.sign(message)

        der = self._private_key.sign(message, ec.ECDSA(hashes.SHA256()))
        r, s = decode_dss_signature(der)
        if s > SECP256K1_HALF_N:
            s = SECP256K1_N - s
        return r.to_bytes(32, "big") + s.to_bytes(32, "big")

    def verify(self, message: bytes, signature: bytes) -> bool:
        """Check a signature produced by :meth:`sign`"""
        if len(signature) != 64:
            return False
        public_key = self._private_key.public_key()
        try:
            if self.algo is Algo.ED25519:
                public_key.verify(signature, message)
                return True
            r = int.from_bytes(signature[:32], "big")
            s = int.from_bytes(signature[32:], "big")
            if s > SECP256K1_HALF_N:
                return False
            public_key.verify(encode_dss_signature(r, s), message, ec.ECDSA(hashes.SHA256()))
            return True
        except InvalidSignature:
            return False
