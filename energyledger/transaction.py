"""
EnergyLedger Transaction System

A transaction either moves tokens between participants or records a
resource event (energy delivered, compute allocated, carbon offset bought).
Records without a sender are system-issued credits: tokenized energy and
mining rewards.
"""

import time
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional, Union, Iterator

from . import config
from .crypto_utils import sha256, canonical_json
from .energy import calculate_compute_cost, calculate_carbon_credit_cost
from .errors import CapacityError
from .wallet import verify_signature


@dataclass
class EnergyTradeData:
    """Energy delivered by a provider and converted into tokens."""
    kind = config.TX_ENERGY_TRADE
    energy_amount: float              # kWh
    price_per_kwh: float              # tokens per kWh
    energy_source: str = "mixed"
    bonus: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ComputeAllocationData:
    """GPU hours bought for an AI workload."""
    kind = config.TX_COMPUTE_ALLOCATION
    compute_units: float              # GPU hours
    workload_type: str = "general"
    estimated_energy: float = 0.0     # kWh

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CarbonCreditData:
    """Carbon offset purchase."""
    kind = config.TX_CARBON_CREDIT
    carbon_amount: float              # kg CO2
    credit_type: str = "offset"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MiningRewardData:
    """Breakdown of a block reward."""
    kind = config.TX_MINING_REWARD
    base_reward: float
    resource_bonus: float
    block_height: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


Metadata = Union[EnergyTradeData, ComputeAllocationData, CarbonCreditData, MiningRewardData]

METADATA_TYPES = {
    config.TX_ENERGY_TRADE: EnergyTradeData,
    config.TX_COMPUTE_ALLOCATION: ComputeAllocationData,
    config.TX_CARBON_CREDIT: CarbonCreditData,
    config.TX_MINING_REWARD: MiningRewardData,
}


@dataclass
class Transaction:
    """
    An EnergyLedger transaction.

    Construction never fails; fields are stored as given. Whether the
    record may enter the ledger is decided by is_valid() and the
    validation layer.
    """
    sender: Optional[str]
    recipient: str
    amount: float
    tx_type: str = config.TX_TRANSFER
    metadata: Optional[Metadata] = None
    timestamp: float = 0.0
    signature: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = time.time()

    @property
    def is_system(self) -> bool:
        return self.sender is None

    def get_signing_data(self) -> str:
        """Canonical serialization of the signed fields."""
        data = {
            'sender': self.sender,
            'recipient': self.recipient,
            'amount': self.amount,
            'tx_type': self.tx_type,
            'timestamp': self.timestamp,
            'metadata': self.metadata.to_dict() if self.metadata is not None else None
        }
        return canonical_json(data)

    def compute_hash(self) -> str:
        """Compute the canonical digest that the sender signs."""
        return sha256(self.get_signing_data())

    def sign(self, wallet) -> None:
        """
        Sign this transaction with the sender's wallet.

        Raises:
            ValueError: If the wallet does not belong to the sender
        """
        if self.sender is None:
            raise ValueError("System-issued transactions are not signed")
        if wallet.public_key != self.sender:
            raise ValueError("You cannot sign transactions for other wallets!")
        self.signature = wallet.sign(self.compute_hash())

    def is_valid(self) -> bool:
        """Check the signature. System-issued records are always valid."""
        if self.sender is None:
            return True
        if not self.signature:
            return False
        return verify_signature(self.sender, self.compute_hash(), self.signature)

    def involves(self, address: str) -> bool:
        return self.sender == address or self.recipient == address

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'sender': self.sender,
            'recipient': self.recipient,
            'amount': self.amount,
            'tx_type': self.tx_type,
            'metadata': self.metadata.to_dict() if self.metadata is not None else None,
            'timestamp': self.timestamp,
            'signature': self.signature
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        """Create from dictionary."""
        data = dict(data)
        meta = data.pop('metadata', None)
        metadata_cls = METADATA_TYPES.get(data.get('tx_type', config.TX_TRANSFER))
        if meta is not None and metadata_cls is not None:
            data['metadata'] = metadata_cls(**meta)
        return cls(**data)

    def summary(self) -> Dict[str, Any]:
        """Human-readable summary for display."""
        result = {
            'from': self.sender[:10] + '...' if self.sender else 'System',
            'to': self.recipient[:10] + '...',
            'amount': self.amount,
            'type': self.tx_type,
            'timestamp': datetime.fromtimestamp(self.timestamp, tz=timezone.utc).isoformat()
        }

        meta = self.metadata
        if isinstance(meta, EnergyTradeData):
            result['energy_amount'] = f"{meta.energy_amount} kWh"
            result['price_per_kwh'] = meta.price_per_kwh
            result['energy_source'] = meta.energy_source
        elif isinstance(meta, ComputeAllocationData):
            result['compute_units'] = f"{meta.compute_units} GPU hours"
            result['workload_type'] = meta.workload_type
            result['estimated_energy'] = f"{meta.estimated_energy} kWh"
        elif isinstance(meta, CarbonCreditData):
            result['carbon_amount'] = f"{meta.carbon_amount} kg CO2"
            result['credit_type'] = meta.credit_type

        return result

    def __repr__(self) -> str:
        sender = self.sender[:10] if self.sender else "System"
        return f"Transaction({self.tx_type}, {sender} -> {self.recipient[:10]}, {self.amount})"


class TransactionBuilder:
    """Helper class to build transactions."""

    @staticmethod
    def create_transfer(sender: str, recipient: str, amount: float) -> Transaction:
        """Create an unsigned transfer."""
        return Transaction(sender=sender, recipient=recipient, amount=amount)

    @staticmethod
    def create_energy_trade(provider: str, energy_amount: float, energy_source: str,
                            rate: float, bonus: float) -> Transaction:
        """
        Create the system credit for tokenized energy.

        Args:
            provider: Address receiving the tokens
            energy_amount: Energy delivered in kWh
            energy_source: Source of the energy
            rate: Tokens per kWh
            bonus: Source bonus multiplier

        Returns:
            Unsigned energy-trade transaction
        """
        tokens = energy_amount * rate
        return Transaction(
            sender=None,
            recipient=provider,
            amount=tokens * bonus,
            tx_type=config.TX_ENERGY_TRADE,
            metadata=EnergyTradeData(
                energy_amount=energy_amount,
                price_per_kwh=rate,
                energy_source=energy_source,
                bonus=bonus
            )
        )

    @staticmethod
    def create_compute_allocation(sender: str, recipient: str, compute_units: float,
                                  workload_type: str = "general",
                                  rate: float = config.ENERGY_TO_TOKEN_RATE) -> Transaction:
        """Create an unsigned payment for compute resources."""
        cost, estimated_energy = calculate_compute_cost(compute_units, rate)
        return Transaction(
            sender=sender,
            recipient=recipient,
            amount=cost,
            tx_type=config.TX_COMPUTE_ALLOCATION,
            metadata=ComputeAllocationData(
                compute_units=compute_units,
                workload_type=workload_type,
                estimated_energy=estimated_energy
            )
        )

    @staticmethod
    def create_carbon_credit(sender: str, carbon_amount: float) -> Transaction:
        """Create an unsigned carbon offset purchase."""
        return Transaction(
            sender=sender,
            recipient=config.CARBON_OFFSET_POOL,
            amount=calculate_carbon_credit_cost(carbon_amount),
            tx_type=config.TX_CARBON_CREDIT,
            metadata=CarbonCreditData(carbon_amount=carbon_amount)
        )

    @staticmethod
    def create_mining_reward(miner: str, base_reward: float, resource_bonus: float,
                             block_height: int) -> Transaction:
        """Create a mining reward (system-issued)."""
        return Transaction(
            sender=None,
            recipient=miner,
            amount=base_reward * resource_bonus,
            tx_type=config.TX_MINING_REWARD,
            metadata=MiningRewardData(
                base_reward=base_reward,
                resource_bonus=resource_bonus,
                block_height=block_height
            )
        )


class TransactionPool:
    """
    Ordered pool of pending transactions waiting to be mined.

    Bounded at max_size; overflow is rejected, never evicted.
    """

    def __init__(self, max_size: int = config.MAX_PENDING_TRANSACTIONS):
        self.max_size = max_size
        self.pending: List[Transaction] = []

    def is_full(self) -> bool:
        return len(self.pending) >= self.max_size

    def add(self, tx: Transaction) -> None:
        """Append a transaction, raising CapacityError when full."""
        if self.is_full():
            raise CapacityError(self.max_size)
        self.pending.append(tx)

    def snapshot(self) -> List[Transaction]:
        return list(self.pending)

    def drain(self) -> List[Transaction]:
        """Remove and return all pending transactions."""
        drained, self.pending = self.pending, []
        return drained

    def __len__(self) -> int:
        return len(self.pending)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(list(self.pending))

    def __repr__(self) -> str:
        return f"TransactionPool({len(self)}/{self.max_size} pending)"
