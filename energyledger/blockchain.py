"""
Block and Blockchain implementation for EnergyLedger

Resource-backed ledger:
- Each block records the energy, compute and carbon behind its transactions
- The block's resource bonus scales the miner's reward
- Balances are derived from the sealed chain and memoized until the next block
- A reverse address index keeps history lookups proportional to the result
"""

import logging
import threading
import time
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any

from . import config
from .cache import ResultCache
from .config import LedgerConfig
from .crypto_utils import canonical_json, mining_hash, check_difficulty, generate_compute_proof
from .energy import calculate_mining_reward, calculate_resource_bonus, tokenization_bonus
from .errors import (
    ValidationError, IntegrityError, InsufficientBalanceError, CapacityError
)
from .index import AddressIndex
from .miner import DifficultyController, MiningJob, MiningMetrics, seal
from .transaction import Transaction, TransactionBuilder, TransactionPool
from .validation import (
    validate_address, validate_energy_amount, validate_energy_source,
    validate_compute_units, validate_workload_type, validate_carbon_amount,
    validate_transaction, validate_resource_hints
)

logger = logging.getLogger(__name__)


@dataclass
class ResourceData:
    """
    Resource usage summary of a block.

    Attributes:
        energy_consumed: kWh behind the block's transactions
        compute_units: GPU/TPU hours
        carbon_footprint: kg CO2
        energy_source: renewable, nuclear, fossil or mixed
        efficiency_score: 0-100
        workload_type: training, inference, general or genesis
        compute_proof: Attestation token for the compute performed
    """
    energy_consumed: float = 0.0
    compute_units: float = 0.0
    carbon_footprint: float = 0.0
    energy_source: str = config.DEFAULT_ENERGY_SOURCE
    efficiency_score: float = 0
    workload_type: str = config.DEFAULT_WORKLOAD_TYPE
    compute_proof: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Block:
    """
    A block in the chain.

    Attributes:
        timestamp: Unix timestamp of block creation
        transactions: Transactions sealed in this block
        previous_hash: Hash of the previous block
        resources: Resource usage summary
        nonce: Proof-of-work counter
        hash: Digest of this block, set when sealed
        difficulty: Difficulty in force when the block was sealed
        algorithm: Proof-of-work digest ("sha256" or "argon2id")
        mining_metrics: Seal performance, not part of the digest
        resource_bonus: Reward multiplier derived from resources
    """
    timestamp: float
    transactions: List[Transaction]
    previous_hash: str
    resources: ResourceData = field(default_factory=ResourceData)
    nonce: int = 0
    hash: str = ""
    difficulty: int = 0
    algorithm: str = config.HASH_ALGORITHM
    mining_metrics: Optional[MiningMetrics] = None
    resource_bonus: float = field(init=False)

    def __post_init__(self):
        self.resource_bonus = calculate_resource_bonus(
            self.resources.energy_source,
            self.resources.efficiency_score,
            self.resources.workload_type
        )

    def compute_header(self) -> str:
        """Serialize everything the digest covers except the nonce."""
        return (
            f"{self.previous_hash}"
            f"{self.timestamp!r}"
            f"{canonical_json([tx.to_dict() for tx in self.transactions])}"
            f"{canonical_json(self.resources.to_dict())}"
        )

    def compute_hash(self) -> str:
        """Compute the digest of this block at its current nonce."""
        return mining_hash(f"{self.compute_header()}{self.nonce}",
                           self.previous_hash, self.algorithm)

    def meets_difficulty(self) -> bool:
        return check_difficulty(self.hash, self.difficulty)

    def has_valid_transactions(self) -> bool:
        return all(tx.is_valid() for tx in self.transactions)

    def summary(self) -> Dict[str, Any]:
        """Block summary for display."""
        return {
            'hash': self.hash,
            'previous_hash': self.previous_hash,
            'timestamp': datetime.fromtimestamp(self.timestamp, tz=timezone.utc).isoformat(),
            'transaction_count': len(self.transactions),
            'energy_consumed': f"{self.resources.energy_consumed} kWh",
            'compute_units': self.resources.compute_units,
            'carbon_footprint': f"{self.resources.carbon_footprint} kg CO2",
            'energy_source': self.resources.energy_source,
            'efficiency_score': self.resources.efficiency_score,
            'resource_bonus': f"{self.resource_bonus:.2f}",
            'nonce': self.nonce
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert block to dictionary."""
        return {
            'timestamp': self.timestamp,
            'transactions': [tx.to_dict() for tx in self.transactions],
            'previous_hash': self.previous_hash,
            'resources': self.resources.to_dict(),
            'nonce': self.nonce,
            'hash': self.hash,
            'difficulty': self.difficulty,
            'algorithm': self.algorithm,
            'resource_bonus': self.resource_bonus,
            'mining_metrics': self.mining_metrics.to_dict() if self.mining_metrics else None
        }

    def __repr__(self) -> str:
        return (f"Block(hash={self.hash[:16]}..., "
                f"txs={len(self.transactions)}, nonce={self.nonce})")


class Blockchain:
    """
    The ledger coordinator.

    Owns the chain, the pending pool, the address index, the difficulty
    controller, both result caches and the provider bookkeeping.

    submit(), tokenize_energy() and mine() serialize on a single write lock.
    Queries read a snapshot of the sealed chain, which is append-only, so
    they never wait for a mine in progress.
    """

    def __init__(self, ledger_config: Optional[LedgerConfig] = None,
                 clock=time.monotonic):
        self.config = ledger_config or LedgerConfig()
        cfg = self.config

        self.chain: List[Block] = []
        # Difficulty each block was sealed at, by chain position
        self.sealed_difficulties: List[int] = []
        self.pool = TransactionPool(cfg.max_pending_transactions)
        self.index = AddressIndex()
        self.difficulty_controller = DifficultyController(
            initial=cfg.initial_difficulty,
            minimum=cfg.min_difficulty,
            maximum=cfg.max_difficulty,
            interval=cfg.difficulty_adjustment_interval,
            target_block_time=cfg.target_block_time
        )
        self.balance_cache = ResultCache(cfg.cache_max_size, cfg.cache_ttl, clock,
                                         enabled=cfg.enable_balance_cache)
        self.stats_cache = ResultCache(cfg.cache_max_size, cfg.cache_ttl, clock,
                                       enabled=cfg.enable_stats_cache)

        # Aggregates over sealed blocks
        self.total_energy_tokenized = 0.0
        self.total_carbon_offset = 0.0
        self.total_compute_units = 0.0
        self.energy_providers: Dict[str, Dict[str, Any]] = {}

        self._write_lock = threading.RLock()
        self._create_genesis_block()

    @property
    def difficulty(self) -> int:
        return self.difficulty_controller.difficulty

    def _create_genesis_block(self) -> Block:
        """Create the genesis (first) block."""
        genesis = Block(
            timestamp=config.GENESIS_TIMESTAMP,
            transactions=[],
            previous_hash=config.GENESIS_PREVIOUS_HASH,
            resources=ResourceData(
                energy_source=config.GENESIS_ENERGY_SOURCE,
                efficiency_score=config.GENESIS_EFFICIENCY_SCORE,
                workload_type=config.GENESIS_WORKLOAD_TYPE,
                compute_proof=config.GENESIS_COMPUTE_PROOF
            ),
            algorithm=self.config.hash_algorithm
        )
        genesis.hash = genesis.compute_hash()

        self.sealed_difficulties.append(genesis.difficulty)
        self.chain.append(genesis)
        return genesis

    @property
    def last_block(self) -> Block:
        """Get the last block in the chain."""
        return self.chain[-1]

    @property
    def height(self) -> int:
        """Get the current blockchain height."""
        return len(self.chain) - 1

    @property
    def pending_transactions(self) -> List[Transaction]:
        return self.pool.snapshot()

    def get_block_reward(self, height: Optional[int] = None) -> float:
        """
        Calculate base block reward with halving.

        With no height, returns the reward the next mined block will earn,
        which is evaluated at the chain length after that block is appended.
        """
        if height is None:
            height = len(self.chain) + 1
        cfg = self.config
        return calculate_mining_reward(height, cfg.base_mining_reward,
                                       cfg.halving_interval, cfg.min_mining_reward)

    # =========================================================================
    # Submission
    # =========================================================================

    def submit(self, transaction: Transaction) -> None:
        """
        Add a signed transaction to the pending pool.

        Raises:
            ValidationError: Malformed input or a system-issued record
            IntegrityError: Missing or bad signature
            CapacityError: Pool is full
            InsufficientBalanceError: Sender's sealed balance is below the amount
        """
        if transaction.sender is None:
            raise ValidationError("Transaction must include a sender", 'sender')
        if transaction.tx_type in config.SYSTEM_TRANSACTION_TYPES:
            raise ValidationError(
                f"{transaction.tx_type} records are issued by the ledger only", 'tx_type'
            )

        validate_transaction(transaction)

        if not transaction.is_valid():
            logger.warning(f"Rejected transaction with invalid signature from "
                           f"{transaction.sender[:16]}...")
            raise IntegrityError("Cannot add invalid transaction to chain")

        with self._write_lock:
            if self.pool.is_full():
                logger.warning("Rejected transaction: pool is full")
                raise CapacityError(self.pool.max_size)

            available = self.balance_of(transaction.sender)
            if available < transaction.amount:
                raise InsufficientBalanceError(transaction.amount, available)

            self.pool.add(transaction)
            self.stats_cache.clear()

        logger.debug(f"Accepted {transaction.tx_type} of {transaction.amount} "
                     f"from {transaction.sender[:16]}...")

    def tokenize_energy(self, provider_address: str, energy_amount: float,
                        energy_source: str = config.DEFAULT_ENERGY_SOURCE) -> float:
        """
        Convert delivered energy into tokens for a provider.

        The credit is system-issued and lands in the pool; it counts toward
        the provider's balance once the next block is sealed.

        Returns:
            Number of tokens credited
        """
        validate_address(provider_address, 'provider_address')
        validate_energy_amount(energy_amount)
        validate_energy_source(energy_source)

        transaction = TransactionBuilder.create_energy_trade(
            provider_address, energy_amount, energy_source,
            rate=self.config.energy_to_token_rate,
            bonus=tokenization_bonus(energy_source)
        )

        with self._write_lock:
            self.pool.add(transaction)
            self.stats_cache.clear()

        logger.info(f"Tokenized {energy_amount} kWh ({energy_source}) -> "
                    f"{transaction.amount:.2f} tokens for {provider_address[:16]}...")
        return transaction.amount

    def allocate_compute(self, sender: str, recipient: str, compute_units: float,
                         workload_type: str = config.DEFAULT_WORKLOAD_TYPE) -> Transaction:
        """Build an unsigned compute allocation; the sender signs and submits it."""
        validate_address(sender, 'sender')
        validate_address(recipient, 'recipient')
        validate_compute_units(compute_units)
        validate_workload_type(workload_type)
        return TransactionBuilder.create_compute_allocation(
            sender, recipient, compute_units, workload_type,
            rate=self.config.energy_to_token_rate
        )

    def purchase_carbon_credit(self, sender: str, carbon_amount: float) -> Transaction:
        """Build an unsigned carbon credit purchase; the sender signs and submits it."""
        validate_address(sender, 'sender')
        validate_carbon_amount(carbon_amount)
        return TransactionBuilder.create_carbon_credit(sender, carbon_amount)

    # =========================================================================
    # Mining
    # =========================================================================

    def _aggregate_resources(self, pending: List[Transaction],
                             hints: Dict[str, Any]) -> ResourceData:
        """Combine caller hints with the resources recorded by pending transactions."""
        total_energy = hints.get('energy_consumed', 0.0)
        total_compute = hints.get('compute_units', 0.0)

        for tx in pending:
            if tx.tx_type == config.TX_ENERGY_TRADE:
                total_energy += tx.metadata.energy_amount
            elif tx.tx_type == config.TX_COMPUTE_ALLOCATION:
                total_compute += tx.metadata.compute_units
                total_energy += tx.metadata.estimated_energy

        carbon = hints.get('carbon_footprint')
        if carbon is None:
            carbon = total_energy * config.CO2_PER_KWH

        return ResourceData(
            energy_consumed=total_energy,
            compute_units=total_compute,
            carbon_footprint=carbon,
            energy_source=hints.get('energy_source', config.DEFAULT_ENERGY_SOURCE),
            efficiency_score=hints.get('efficiency_score', config.DEFAULT_EFFICIENCY_SCORE),
            workload_type=hints.get('workload_type', config.DEFAULT_WORKLOAD_TYPE),
            compute_proof=hints.get('compute_proof') or generate_compute_proof()
        )

    def mine(self, reward_address: str, hints: Optional[Dict[str, Any]] = None,
             stop_event: Optional[threading.Event] = None) -> Block:
        """
        Seal the pending pool into a new block.

        The miner's reward, reward(len(chain) after append) x resource bonus,
        is sealed as the block's last transaction. On success the pool is
        empty, the index and statistics are updated, difficulty is
        re-evaluated and both caches are cleared.

        Args:
            reward_address: Address receiving the mining reward
            hints: Optional resource fields (energy_consumed, compute_units,
                carbon_footprint, energy_source, efficiency_score,
                workload_type, compute_proof)
            stop_event: Set it to cancel the nonce search

        Returns:
            The sealed block

        Raises:
            ValidationError: Bad reward address or hints
            MiningCancelled: stop_event was set; chain and pool are unchanged
        """
        hints = dict(hints or {})
        validate_address(reward_address, 'reward_address')
        validate_resource_hints(hints)

        with self._write_lock:
            pending = self.pool.snapshot()
            position = len(self.chain)

            block = Block(
                timestamp=time.time(),
                transactions=pending,
                previous_hash=self.last_block.hash,
                resources=self._aggregate_resources(pending, hints),
                algorithm=self.config.hash_algorithm
            )
            reward = TransactionBuilder.create_mining_reward(
                reward_address,
                base_reward=self.get_block_reward(position + 1),
                resource_bonus=block.resource_bonus,
                block_height=position
            )
            block.transactions.append(reward)

            metrics = seal(block, self.difficulty, reward_address, stop_event,
                           self.config.mining_check_interval)

            self.sealed_difficulties.append(block.difficulty)
            self.chain.append(block)
            self.pool.drain()
            self.index.add_block(position, block)
            self._record_block_stats(block)

            self.difficulty_controller.record(metrics.mining_time)
            self.difficulty_controller.adjust(len(self.chain))

            self.balance_cache.clear()
            self.stats_cache.clear()

        logger.info(f"Block #{position} sealed: {block.hash[:16]}... "
                    f"nonce={block.nonce} txs={len(block.transactions)} "
                    f"time={metrics.mining_time:.2f}s reward={reward.amount:.4f}")
        return block

    def mine_async(self, reward_address: str,
                   hints: Optional[Dict[str, Any]] = None) -> MiningJob:
        """Start mine() on a background thread; cancel through the returned job."""
        job = MiningJob(lambda stop_event: self.mine(reward_address, hints, stop_event),
                        name=f"mining-{len(self.chain)}")
        return job.start()

    def _record_block_stats(self, block: Block) -> None:
        """Update running totals and provider bookkeeping for a sealed block."""
        self.total_energy_tokenized += block.resources.energy_consumed
        self.total_carbon_offset += block.resources.carbon_footprint
        self.total_compute_units += block.resources.compute_units

        for tx in block.transactions:
            if tx.tx_type == config.TX_CARBON_CREDIT:
                self.total_carbon_offset += tx.metadata.carbon_amount
            elif tx.tx_type == config.TX_ENERGY_TRADE:
                provider = self.energy_providers.setdefault(tx.recipient, {
                    'total_energy': 0.0,
                    'total_tokens': 0.0,
                    'energy_source': tx.metadata.energy_source
                })
                provider['total_energy'] += tx.metadata.energy_amount
                provider['total_tokens'] += tx.amount
                provider['energy_source'] = tx.metadata.energy_source

    # =========================================================================
    # Queries
    # =========================================================================

    def is_valid(self) -> bool:
        """
        Validate the entire chain.

        Checks every block after genesis for valid transactions, a
        self-consistent digest, linkage to its predecessor and the
        difficulty that was in force when it was sealed. Stops at the
        first failure.
        """
        chain = list(self.chain)
        # Appended before the chain in mine(), so never shorter than the snapshot
        sealed_difficulties = list(self.sealed_difficulties)
        for i in range(1, len(chain)):
            current_block = chain[i]
            previous_block = chain[i - 1]

            if not current_block.has_valid_transactions():
                logger.warning(f"Block #{i} contains an invalid transaction")
                return False

            if current_block.hash != current_block.compute_hash():
                logger.warning(f"Block #{i} hash does not match its contents")
                return False

            if current_block.previous_hash != previous_block.hash:
                logger.warning(f"Block #{i} is not linked to block #{i - 1}")
                return False

            # Not covered by the digest
            if current_block.difficulty != sealed_difficulties[i]:
                logger.warning(f"Block #{i} claims difficulty {current_block.difficulty}, "
                               f"sealed at {sealed_difficulties[i]}")
                return False

            if not current_block.meets_difficulty():
                logger.warning(f"Block #{i} does not meet difficulty {current_block.difficulty}")
                return False

        return True

    def balance_of(self, address: str) -> float:
        """
        Calculate the balance of an address over the sealed chain.

        Memoized per chain length, so a cached value can never describe an
        older chain than the one it is returned for.
        """
        chain = list(self.chain)
        key = (address, len(chain))

        cached = self.balance_cache.get(key)
        if cached is not None:
            return cached

        logger.debug(f"Balance cache miss for {address[:16]}...")
        balance = 0.0
        for block in chain:
            for tx in block.transactions:
                if tx.sender == address:
                    balance -= tx.amount
                if tx.recipient == address:
                    balance += tx.amount

        self.balance_cache.set(key, balance)
        return balance

    def history_of(self, address: str) -> List[Transaction]:
        """Get all sealed transactions that reference an address, in chain order."""
        chain = list(self.chain)

        if address in self.index:
            return [chain[block_pos].transactions[tx_pos]
                    for block_pos, tx_pos in self.index.locations(address)
                    if block_pos < len(chain)]

        return [tx for block in chain for tx in block.transactions if tx.involves(address)]

    def statistics(self) -> Dict[str, Any]:
        """Aggregate ledger statistics, cached until the next mutation."""
        key = ('statistics', len(self.chain))
        cached = self.stats_cache.get(key)
        if cached is not None:
            return dict(cached)

        stats = {
            'total_blocks': len(self.chain),
            'difficulty': self.difficulty,
            'mining_reward': self.get_block_reward(),
            'energy_to_token_rate': self.config.energy_to_token_rate,
            'total_energy_tokenized': self.total_energy_tokenized,
            'total_carbon_offset': self.total_carbon_offset,
            'total_compute_units': self.total_compute_units,
            'avg_block_time': self.difficulty_controller.average_block_time(),
            'pending_transactions': len(self.pool),
            'energy_providers': len(self.energy_providers),
            'indexed_addresses': len(self.index),
            'is_valid': self.is_valid(),
            'cache_stats': {
                'balance_cache': self.balance_cache.stats(),
                'stats_cache': self.stats_cache.stats()
            }
        }

        self.stats_cache.set(key, stats)
        return dict(stats)

    def leaderboard(self) -> List[Dict[str, Any]]:
        """Energy providers ranked by sealed energy delivered."""
        entries = [
            {'address': address, **data}
            for address, data in list(self.energy_providers.items())
        ]
        return sorted(entries, key=lambda e: e['total_energy'], reverse=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert blockchain to dictionary."""
        return {
            'chain': [block.to_dict() for block in self.chain],
            'difficulty': self.difficulty,
            'pending_transactions': [tx.to_dict() for tx in self.pool]
        }

    def __len__(self) -> int:
        return len(self.chain)

    def __repr__(self) -> str:
        return (f"Blockchain(height={self.height}, "
                f"difficulty={self.difficulty}, "
                f"pending={len(self.pool)})")
