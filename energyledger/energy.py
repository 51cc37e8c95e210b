"""
Energy calculation utilities

Resource bonus, tokenization, compute/carbon pricing and the reward
schedule. All functions are pure.
"""

import math
from typing import Tuple

from . import config


def calculate_resource_bonus(energy_source: str, efficiency_score: float,
                             workload_type: str) -> float:
    """
    Calculate the reward multiplier for a block's resource usage.

    Source and efficiency bonuses each apply at most one tier; the
    inference bonus stacks on top.
    """
    bonus = 1.0

    if energy_source == 'renewable':
        bonus *= config.RENEWABLE_ENERGY_BONUS
    elif energy_source == 'nuclear':
        bonus *= config.NUCLEAR_ENERGY_BONUS

    if efficiency_score > config.HIGH_EFFICIENCY_THRESHOLD:
        bonus *= config.HIGH_EFFICIENCY_BONUS
    elif efficiency_score > config.MEDIUM_EFFICIENCY_THRESHOLD:
        bonus *= config.MEDIUM_EFFICIENCY_BONUS

    if workload_type == 'inference':
        bonus *= config.INFERENCE_WORKLOAD_BONUS

    return bonus


def tokenization_bonus(energy_source: str) -> float:
    """Bonus applied when converting delivered energy into tokens."""
    if energy_source == 'renewable':
        return config.RENEWABLE_ENERGY_BONUS
    if energy_source == 'nuclear':
        return config.NUCLEAR_ENERGY_BONUS
    return 1.0


def estimate_energy_consumption(time_in_seconds: float = 1.0) -> float:
    """Estimate kWh spent mining, assuming an average GPU power draw."""
    return (config.AVG_GPU_POWER_WATTS * time_in_seconds) / (1000 * 3600)


def calculate_carbon_footprint(energy_kwh: float, energy_source: str = 'mixed') -> float:
    """Estimate kg CO2 for a quantity of energy."""
    multiplier = config.CO2_PER_KWH

    if energy_source == 'renewable':
        multiplier *= 0.1
    elif energy_source == 'nuclear':
        multiplier *= 0.2
    elif energy_source == 'fossil':
        multiplier *= 1.5

    return energy_kwh * multiplier


def calculate_compute_cost(compute_units: float,
                           rate: float = config.ENERGY_TO_TOKEN_RATE) -> Tuple[float, float]:
    """
    Price a compute allocation.

    Returns:
        Tuple of (cost_in_tokens, estimated_energy_kwh)
    """
    estimated_energy = compute_units * config.KWH_PER_GPU_HOUR
    return estimated_energy * rate, estimated_energy


def calculate_carbon_credit_cost(carbon_amount: float) -> float:
    return carbon_amount * config.CARBON_CREDIT_PRICE_PER_KG


def calculate_transaction_fee(amount: float) -> float:
    return amount * config.TRANSACTION_FEE_PERCENTAGE


def calculate_mining_reward(height: int,
                            base_reward: float = config.BASE_MINING_REWARD,
                            halving_interval: int = config.HALVING_INTERVAL,
                            min_reward: float = config.MIN_MINING_REWARD) -> float:
    """
    Calculate block reward with halving.

    Reward halves every halving_interval blocks, never dropping below
    min_reward.
    """
    halvings = height // halving_interval
    # ldexp underflows to 0.0 instead of overflowing for huge heights
    return max(math.ldexp(base_reward, -halvings), min_reward)
