"""
EnergyLedger Configuration

Resource-backed ledger parameters:
- Proof-of-work difficulty is measured in leading zero hex characters
- Rewards halve every HALVING_INTERVAL blocks and are scaled by the
  block's resource bonus (energy source, efficiency, workload)
- Energy is tokenized at ENERGY_TO_TOKEN_RATE tokens per kWh
"""

import json
from dataclasses import dataclass, fields
from typing import Any, Dict

# =============================================================================
# MINING / DIFFICULTY
# =============================================================================

INITIAL_DIFFICULTY = 4
MIN_DIFFICULTY = 2
MAX_DIFFICULTY = 8
DIFFICULTY_ADJUSTMENT_INTERVAL = 10  # blocks
TARGET_BLOCK_TIME = 10.0  # seconds

# Nonces tried between checks of the cancellation event
MINING_CHECK_INTERVAL = 1000

# Proof-of-work digest: "sha256" or "argon2id"
HASH_ALGORITHM = "sha256"

# =============================================================================
# REWARDS
# =============================================================================

BASE_MINING_REWARD = 100.0
MIN_MINING_REWARD = 0.00000001
HALVING_INTERVAL = 210000  # Halve reward every N blocks

# =============================================================================
# RESOURCE BONUSES
# =============================================================================

RENEWABLE_ENERGY_BONUS = 1.5
NUCLEAR_ENERGY_BONUS = 1.2
HIGH_EFFICIENCY_THRESHOLD = 80
HIGH_EFFICIENCY_BONUS = 1.3
MEDIUM_EFFICIENCY_THRESHOLD = 60
MEDIUM_EFFICIENCY_BONUS = 1.1
INFERENCE_WORKLOAD_BONUS = 1.2

# =============================================================================
# ENERGY / COMPUTE / CARBON
# =============================================================================

ENERGY_TO_TOKEN_RATE = 10.0  # 1 kWh = 10 tokens
KWH_PER_GPU_HOUR = 0.3
AVG_GPU_POWER_WATTS = 250
CO2_PER_KWH = 0.5  # kg
CARBON_CREDIT_PRICE_PER_KG = 0.5
CARBON_OFFSET_POOL = "CARBON_OFFSET_POOL"
TRANSACTION_FEE_PERCENTAGE = 0.001  # 0.1%, informational only

# Defaults applied to mining hints that leave a field out
DEFAULT_EFFICIENCY_SCORE = 50
DEFAULT_ENERGY_SOURCE = "mixed"
DEFAULT_WORKLOAD_TYPE = "general"

# =============================================================================
# POOL / CACHE
# =============================================================================

MAX_PENDING_TRANSACTIONS = 1000
CACHE_TTL = 5.0  # seconds
CACHE_MAX_SIZE = 1000
ENABLE_BALANCE_CACHE = True
ENABLE_STATS_CACHE = True

# =============================================================================
# VALIDATION LIMITS
# =============================================================================

MIN_TRANSACTION_AMOUNT = 0.000001
MAX_TRANSACTION_AMOUNT = 1000000000
MIN_ENERGY_AMOUNT = 0.001
MAX_ENERGY_AMOUNT = 1000000
MIN_COMPUTE_UNITS = 0.1
MAX_COMPUTE_UNITS = 100000
MIN_CARBON_AMOUNT = 0.001
MAX_CARBON_AMOUNT = 1000000
MIN_ADDRESS_LENGTH = 10

# =============================================================================
# ENUMERATIONS
# =============================================================================

TX_TRANSFER = "transfer"
TX_ENERGY_TRADE = "energy_trade"
TX_COMPUTE_ALLOCATION = "compute_allocation"
TX_CARBON_CREDIT = "carbon_credit"
TX_MINING_REWARD = "mining_reward"
TRANSACTION_TYPES = (TX_TRANSFER, TX_ENERGY_TRADE, TX_COMPUTE_ALLOCATION,
                     TX_CARBON_CREDIT, TX_MINING_REWARD)
# Only the ledger issues these; they never carry a sender
SYSTEM_TRANSACTION_TYPES = (TX_ENERGY_TRADE, TX_MINING_REWARD)

ENERGY_SOURCES = ("renewable", "nuclear", "fossil", "mixed")
AI_WORKLOAD_TYPES = ("training", "inference", "general", "genesis")

# =============================================================================
# ARGON2 PARAMETERS (used when HASH_ALGORITHM == "argon2id")
# =============================================================================

ARGON2_TIME_COST = 1
ARGON2_MEMORY_COST = 8192  # KB
ARGON2_PARALLELISM = 1
ARGON2_HASH_LEN = 32

# Genesis Block Configuration
GENESIS_TIMESTAMP = 1703548800.0  # Fixed timestamp for reproducibility
GENESIS_PREVIOUS_HASH = "0" * 64
GENESIS_ENERGY_SOURCE = "renewable"
GENESIS_EFFICIENCY_SCORE = 100
GENESIS_WORKLOAD_TYPE = "genesis"
GENESIS_COMPUTE_PROOF = "GENESIS_BLOCK"


@dataclass
class LedgerConfig:
    """Per-instance ledger configuration."""
    initial_difficulty: int = INITIAL_DIFFICULTY
    min_difficulty: int = MIN_DIFFICULTY
    max_difficulty: int = MAX_DIFFICULTY
    difficulty_adjustment_interval: int = DIFFICULTY_ADJUSTMENT_INTERVAL
    target_block_time: float = TARGET_BLOCK_TIME
    mining_check_interval: int = MINING_CHECK_INTERVAL
    hash_algorithm: str = HASH_ALGORITHM
    base_mining_reward: float = BASE_MINING_REWARD
    min_mining_reward: float = MIN_MINING_REWARD
    halving_interval: int = HALVING_INTERVAL
    energy_to_token_rate: float = ENERGY_TO_TOKEN_RATE
    max_pending_transactions: int = MAX_PENDING_TRANSACTIONS
    cache_ttl: float = CACHE_TTL
    cache_max_size: int = CACHE_MAX_SIZE
    enable_balance_cache: bool = ENABLE_BALANCE_CACHE
    enable_stats_cache: bool = ENABLE_STATS_CACHE

    def __post_init__(self):
        if not self.min_difficulty <= self.initial_difficulty <= self.max_difficulty:
            raise ValueError(
                f"initial_difficulty {self.initial_difficulty} outside "
                f"[{self.min_difficulty}, {self.max_difficulty}]"
            )
        if self.min_difficulty < 0:
            raise ValueError("min_difficulty cannot be negative")
        if self.difficulty_adjustment_interval < 1:
            raise ValueError("difficulty_adjustment_interval must be at least 1")
        if self.halving_interval < 1:
            raise ValueError("halving_interval must be at least 1")
        if self.max_pending_transactions < 1:
            raise ValueError("max_pending_transactions must be at least 1")
        if self.cache_max_size < 1:
            raise ValueError("cache_max_size must be at least 1")
        if self.mining_check_interval < 1:
            raise ValueError("mining_check_interval must be at least 1")
        if self.hash_algorithm not in ("sha256", "argon2id"):
            raise ValueError(f"Unknown hash algorithm: {self.hash_algorithm}")

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LedgerConfig':
        """Create from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


def load_config(filepath: str) -> LedgerConfig:
    """Load a LedgerConfig from a JSON file."""
    with open(filepath, 'r') as f:
        data = json.load(f)
    return LedgerConfig.from_dict(data)
