"""
EnergyLedger - A proof-of-work ledger for tokenized energy and compute
"""

__version__ = "1.0.0"
__author__ = "EnergyLedger Team"

from .blockchain import Block, Blockchain, ResourceData
from .cache import ResultCache
from .config import LedgerConfig, load_config
from .errors import (
    LedgerError, ValidationError, IntegrityError,
    InsufficientBalanceError, CapacityError, MiningCancelled
)
from .index import AddressIndex
from .log_utils import setup_logging
from .miner import DifficultyController, MiningJob, MiningMetrics, seal
from .transaction import Transaction, TransactionBuilder, TransactionPool
from .wallet import Wallet

__all__ = [
    'Block', 'Blockchain', 'ResourceData', 'ResultCache', 'LedgerConfig',
    'load_config', 'LedgerError', 'ValidationError', 'IntegrityError',
    'InsufficientBalanceError', 'CapacityError', 'MiningCancelled',
    'AddressIndex', 'setup_logging', 'DifficultyController', 'MiningJob',
    'MiningMetrics', 'seal', 'Transaction', 'TransactionBuilder',
    'TransactionPool', 'Wallet',
]
