"""
Input validation for ledger operations

Every guard raises ValidationError carrying the offending field name and
has no side effects.
"""

import math
from typing import Any, Dict, Optional

from . import config
from .errors import ValidationError
from .transaction import METADATA_TYPES


def _validate_number(value: Any, field: str, label: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        raise ValidationError(f"{label} must be a valid number", field)


def _validate_range(value: Any, minimum: float, maximum: float,
                    field: str, label: str, unit: str = "") -> None:
    _validate_number(value, field, label)
    suffix = f" {unit}" if unit else ""
    if value < minimum:
        raise ValidationError(f"{label} must be at least {minimum}{suffix}", field)
    if value > maximum:
        raise ValidationError(f"{label} cannot exceed {maximum}{suffix}", field)


def validate_amount(amount: Any, field: str = 'amount') -> None:
    """Validate a transaction amount."""
    _validate_range(amount, config.MIN_TRANSACTION_AMOUNT,
                    config.MAX_TRANSACTION_AMOUNT, field, field)


def validate_energy_amount(energy_amount: Any) -> None:
    _validate_range(energy_amount, config.MIN_ENERGY_AMOUNT, config.MAX_ENERGY_AMOUNT,
                    'energy_amount', 'Energy amount', 'kWh')


def validate_compute_units(compute_units: Any) -> None:
    _validate_range(compute_units, config.MIN_COMPUTE_UNITS, config.MAX_COMPUTE_UNITS,
                    'compute_units', 'Compute units')


def validate_carbon_amount(carbon_amount: Any) -> None:
    _validate_range(carbon_amount, config.MIN_CARBON_AMOUNT, config.MAX_CARBON_AMOUNT,
                    'carbon_amount', 'Carbon amount', 'kg')


def validate_address(address: Any, field: str = 'address') -> None:
    """Validate a participant identifier."""
    if not address or not isinstance(address, str):
        raise ValidationError(f"{field} must be a valid string", field)
    if len(address) < config.MIN_ADDRESS_LENGTH:
        raise ValidationError(f"{field} is too short", field)


def validate_energy_source(energy_source: Any) -> None:
    if energy_source not in config.ENERGY_SOURCES:
        raise ValidationError(
            f"Energy source must be one of: {', '.join(config.ENERGY_SOURCES)}",
            'energy_source'
        )


def validate_workload_type(workload_type: Any) -> None:
    if workload_type not in config.AI_WORKLOAD_TYPES:
        raise ValidationError(
            f"AI workload type must be one of: {', '.join(config.AI_WORKLOAD_TYPES)}",
            'workload_type'
        )


def validate_efficiency_score(score: Any) -> None:
    _validate_number(score, 'efficiency_score', 'Efficiency score')
    if score < 0 or score > 100:
        raise ValidationError("Efficiency score must be between 0 and 100",
                              'efficiency_score')


def validate_transaction(tx) -> None:
    """
    Apply the bounds checks relevant to a transaction's kind.

    Mining rewards are system-issued and only need a valid recipient and
    a non-negative amount.
    """
    if tx.tx_type not in config.TRANSACTION_TYPES:
        raise ValidationError(f"Unknown transaction type: {tx.tx_type}", 'tx_type')

    validate_address(tx.recipient, 'recipient')
    if tx.sender is not None:
        validate_address(tx.sender, 'sender')

    expected = METADATA_TYPES.get(tx.tx_type)
    if expected is None:
        if tx.metadata is not None:
            raise ValidationError(f"{tx.tx_type} carries no metadata", 'metadata')
    elif not isinstance(tx.metadata, expected):
        raise ValidationError(
            f"{tx.tx_type} requires {expected.__name__} metadata", 'metadata'
        )

    if tx.tx_type == config.TX_MINING_REWARD:
        _validate_number(tx.amount, 'amount', 'amount')
        if tx.amount < 0:
            raise ValidationError("amount cannot be negative", 'amount')
        return

    validate_amount(tx.amount)

    if tx.tx_type == config.TX_ENERGY_TRADE:
        validate_energy_amount(tx.metadata.energy_amount)
        validate_energy_source(tx.metadata.energy_source)
    elif tx.tx_type == config.TX_COMPUTE_ALLOCATION:
        validate_compute_units(tx.metadata.compute_units)
        validate_workload_type(tx.metadata.workload_type)
    elif tx.tx_type == config.TX_CARBON_CREDIT:
        validate_carbon_amount(tx.metadata.carbon_amount)


def validate_resource_hints(hints: Optional[Dict[str, Any]]) -> None:
    """Validate the optional resource fields passed to mine()."""
    if not hints:
        return
    if 'energy_source' in hints:
        validate_energy_source(hints['energy_source'])
    if 'efficiency_score' in hints:
        validate_efficiency_score(hints['efficiency_score'])
    if 'workload_type' in hints:
        validate_workload_type(hints['workload_type'])
    for key in ('energy_consumed', 'compute_units', 'carbon_footprint'):
        if key in hints:
            _validate_number(hints[key], key, key)
            if hints[key] < 0:
                raise ValidationError(f"{key} cannot be negative", key)
