"""
Cryptographic utilities for EnergyLedger
SHA-256 digests, with Argon2id available as a memory-hard proof-of-work hash
"""

import hashlib
import json
import secrets
import time
from typing import Any, Union

from argon2.low_level import Type, hash_secret_raw

from . import config


def sha256(data: Union[str, bytes]) -> str:
    """Compute SHA-256 hash of data."""
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.sha256(data).hexdigest()


def canonical_json(data: Any) -> str:
    """Serialize data deterministically for hashing."""
    return json.dumps(data, sort_keys=True, separators=(',', ':'))


def argon2_hash(data: str, salt: str) -> str:
    """
    Compute a raw Argon2id hash - CPU-friendly, memory-hard hash function.

    Args:
        data: The data to hash (block payload)
        salt: Salt for the hash (previous block hash)

    Returns:
        Hexadecimal hash string
    """
    raw_hash = hash_secret_raw(
        data.encode('utf-8'),
        salt.encode('utf-8')[:16].ljust(16, b'\x00'),
        time_cost=config.ARGON2_TIME_COST,
        memory_cost=config.ARGON2_MEMORY_COST,
        parallelism=config.ARGON2_PARALLELISM,
        hash_len=config.ARGON2_HASH_LEN,
        type=Type.ID
    )
    return raw_hash.hex()


def mining_hash(payload: str, salt: str, algorithm: str = "sha256") -> str:
    """
    Compute the proof-of-work digest of a serialized block.

    Args:
        payload: Canonical block payload (includes the nonce)
        salt: Previous block hash, used as the Argon2 salt
        algorithm: "sha256" or "argon2id"

    Returns:
        Hex digest for difficulty comparison
    """
    if algorithm == "sha256":
        return sha256(payload)
    if algorithm == "argon2id":
        # Second pass keeps the output uniformly distributed for the prefix check
        return sha256(argon2_hash(payload, salt or "genesis"))
    raise ValueError(f"Unknown hash algorithm: {algorithm}")


def check_difficulty(hash_hex: str, difficulty: int) -> bool:
    """
    Check if a hash meets the difficulty requirement.

    Difficulty is measured as the number of leading zero hex characters.
    """
    return hash_hex[:difficulty] == "0" * difficulty


def generate_compute_proof() -> str:
    """Generate a compute-attestation token for a block."""
    return f"COMPUTE_PROOF_{int(time.time() * 1000)}_{secrets.token_hex(4)}"
