"""
EnergyLedger Wallet - Key management and transaction signing

Addresses are the hex-encoded raw SECP256k1 public key. The ledger only
ever sees addresses and signatures; private keys stay in the wallet.
"""

import hashlib
import time
from typing import Tuple

from ecdsa import SigningKey, VerifyingKey, SECP256k1, BadSignatureError

from .crypto_utils import sha256


def generate_keypair() -> Tuple[str, str]:
    """
    Generate a new ECDSA keypair.

    Returns:
        Tuple of (private_key_hex, public_key_hex)
    """
    sk = SigningKey.generate(curve=SECP256k1)
    vk = sk.get_verifying_key()
    return sk.to_string().hex(), vk.to_string().hex()


def public_key_from_private(private_key_hex: str) -> str:
    """Derive the public key (address) for a private key."""
    sk = SigningKey.from_string(bytes.fromhex(private_key_hex), curve=SECP256k1)
    return sk.get_verifying_key().to_string().hex()


def sign_message(private_key_hex: str, message: str) -> str:
    """
    Sign a message with a private key.

    Args:
        private_key_hex: Private key as hex string
        message: Message to sign

    Returns:
        Signature as hex string
    """
    sk = SigningKey.from_string(bytes.fromhex(private_key_hex), curve=SECP256k1)
    message_hash = sha256(message)
    signature = sk.sign(message_hash.encode(), hashfunc=hashlib.sha256)
    return signature.hex()


def verify_signature(public_key_hex: str, message: str, signature_hex: str) -> bool:
    """
    Verify a signature.

    Args:
        public_key_hex: Public key as hex string
        message: Original message
        signature_hex: Signature to verify

    Returns:
        True if signature is valid
    """
    try:
        vk = VerifyingKey.from_string(bytes.fromhex(public_key_hex), curve=SECP256k1)
        message_hash = sha256(message)
        return vk.verify(bytes.fromhex(signature_hex), message_hash.encode(),
                         hashfunc=hashlib.sha256)
    except (BadSignatureError, ValueError, AssertionError):
        # MalformedPointError subclasses AssertionError
        return False


class Wallet:
    """
    In-memory keypair for signing ledger transactions.
    """

    def __init__(self, private_key: str):
        self._private_key = private_key
        self.public_key = public_key_from_private(private_key)
        self.created_at = time.time()

    @classmethod
    def create(cls) -> 'Wallet':
        """Create a wallet with a freshly generated keypair."""
        private_key, _ = generate_keypair()
        return cls(private_key)

    @property
    def address(self) -> str:
        return self.public_key

    def sign(self, message: str) -> str:
        """Sign a message with the wallet's private key."""
        return sign_message(self._private_key, message)

    def verify(self, message: str, signature: str) -> bool:
        """Verify a signature made by this wallet."""
        return verify_signature(self.public_key, message, signature)

    def __repr__(self) -> str:
        return f"Wallet({self.address[:16]}...)"
