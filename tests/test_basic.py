"""
Basic tests for EnergyLedger
"""

import os
import sys
import unittest

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from energyledger import config
from energyledger.crypto_utils import (
    sha256, canonical_json, check_difficulty, mining_hash, argon2_hash
)
from energyledger.energy import (
    calculate_resource_bonus, tokenization_bonus, calculate_mining_reward,
    calculate_compute_cost, calculate_carbon_footprint, estimate_energy_consumption,
    calculate_transaction_fee
)
from energyledger.errors import ValidationError, CapacityError
from energyledger.transaction import (
    Transaction, TransactionBuilder, TransactionPool, EnergyTradeData, CarbonCreditData
)
from energyledger.validation import (
    validate_amount, validate_energy_amount, validate_compute_units,
    validate_carbon_amount, validate_address, validate_energy_source,
    validate_workload_type, validate_efficiency_score, validate_transaction,
    validate_resource_hints
)
from energyledger.wallet import Wallet, generate_keypair, sign_message, verify_signature


class TestCryptoUtils(unittest.TestCase):
    """Test cryptographic utilities."""

    def test_sha256(self):
        """Test SHA-256 hashing."""
        result = sha256("hello")
        self.assertEqual(len(result), 64)  # 256 bits = 64 hex chars
        # Known hash value
        self.assertEqual(
            sha256("hello"),
            "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
        )

    def test_canonical_json_is_order_independent(self):
        """Key order must not change the serialization."""
        self.assertEqual(canonical_json({'b': 1, 'a': 2}), canonical_json({'a': 2, 'b': 1}))
        self.assertEqual(canonical_json({'a': 1}), '{"a":1}')

    def test_check_difficulty(self):
        """Difficulty counts leading zero hex characters."""
        self.assertTrue(check_difficulty("0" + "f" * 63, 1))
        self.assertFalse(check_difficulty("f" * 64, 1))
        self.assertTrue(check_difficulty("00" + "f" * 62, 2))
        self.assertFalse(check_difficulty("0f" + "f" * 62, 2))
        self.assertTrue(check_difficulty("f" * 64, 0))

    def test_mining_hash_sha256(self):
        """The sha256 algorithm is plain SHA-256 of the payload."""
        self.assertEqual(mining_hash("payload", "salt", "sha256"), sha256("payload"))

    def test_mining_hash_unknown_algorithm(self):
        with self.assertRaises(ValueError):
            mining_hash("payload", "salt", "md5")

    def test_argon2_hash(self):
        """Argon2id digests are deterministic and salted."""
        h1 = argon2_hash("data", "salt")
        self.assertEqual(len(h1), config.ARGON2_HASH_LEN * 2)
        self.assertEqual(h1, argon2_hash("data", "salt"))
        self.assertNotEqual(h1, argon2_hash("data", "other"))
        self.assertEqual(mining_hash("data", "salt", "argon2id"), sha256(h1))


class TestWallet(unittest.TestCase):
    """Test the signing capability."""

    def test_generate_keypair(self):
        """Test keypair generation."""
        private, public = generate_keypair()
        self.assertEqual(len(private), 64)
        self.assertEqual(len(public), 128)

    def test_wallet_address_is_public_key(self):
        wallet = Wallet.create()
        self.assertEqual(wallet.address, wallet.public_key)
        self.assertEqual(Wallet(wallet._private_key).address, wallet.address)

    def test_sign_and_verify(self):
        """Test message signing and verification."""
        wallet = Wallet.create()
        signature = wallet.sign("Hello, EnergyLedger!")

        self.assertTrue(wallet.verify("Hello, EnergyLedger!", signature))
        self.assertFalse(wallet.verify("Hello, tampered!", signature))

    def test_verify_with_other_key_fails(self):
        private, _ = generate_keypair()
        _, other_public = generate_keypair()
        signature = sign_message(private, "message")
        self.assertFalse(verify_signature(other_public, "message", signature))

    def test_verify_malformed_inputs(self):
        """Garbage keys and signatures are rejected, not raised."""
        wallet = Wallet.create()
        self.assertFalse(verify_signature("not-hex", "message", wallet.sign("message")))
        self.assertFalse(verify_signature(wallet.public_key, "message", "zz"))
        self.assertFalse(verify_signature("ab" * 10, "message", wallet.sign("message")))


class TestTransaction(unittest.TestCase):
    """Test transaction functionality."""

    def setUp(self):
        self.alice = Wallet.create()
        self.bob = Wallet.create()

    def test_construction_never_fails(self):
        """Out-of-range values are stored as given."""
        tx = Transaction(sender="x", recipient="", amount=-5)
        self.assertEqual(tx.amount, -5)
        self.assertGreater(tx.timestamp, 0)

    def test_hash_excludes_signature(self):
        tx = TransactionBuilder.create_transfer(self.alice.address, self.bob.address, 10.0)
        before = tx.compute_hash()
        tx.sign(self.alice)
        self.assertEqual(tx.compute_hash(), before)
        self.assertEqual(len(before), 64)

    def test_hash_changes_with_amount(self):
        tx = TransactionBuilder.create_transfer(self.alice.address, self.bob.address, 10.0)
        before = tx.compute_hash()
        tx.amount = 11.0
        self.assertNotEqual(tx.compute_hash(), before)

    def test_signed_transaction_is_valid(self):
        tx = TransactionBuilder.create_transfer(self.alice.address, self.bob.address, 10.0)
        self.assertFalse(tx.is_valid())
        tx.sign(self.alice)
        self.assertTrue(tx.is_valid())

    def test_tampered_transaction_is_invalid(self):
        tx = TransactionBuilder.create_transfer(self.alice.address, self.bob.address, 10.0)
        tx.sign(self.alice)
        tx.amount = 1000.0
        self.assertFalse(tx.is_valid())

    def test_cannot_sign_for_other_wallet(self):
        tx = TransactionBuilder.create_transfer(self.alice.address, self.bob.address, 10.0)
        with self.assertRaises(ValueError):
            tx.sign(self.bob)

    def test_system_transaction_is_valid_unsigned(self):
        tx = TransactionBuilder.create_mining_reward(self.bob.address, 100.0, 1.5, 1)
        self.assertTrue(tx.is_valid())
        self.assertEqual(tx.amount, 150.0)
        self.assertEqual(tx.tx_type, config.TX_MINING_REWARD)
        with self.assertRaises(ValueError):
            tx.sign(self.bob)

    def test_energy_trade_amount(self):
        tx = TransactionBuilder.create_energy_trade(self.alice.address, 100, 'renewable', 10.0, 1.5)
        self.assertEqual(tx.amount, 1500.0)
        self.assertIsNone(tx.sender)
        self.assertIsInstance(tx.metadata, EnergyTradeData)

    def test_compute_allocation_cost(self):
        tx = TransactionBuilder.create_compute_allocation(
            self.alice.address, self.bob.address, 10, 'training')
        self.assertAlmostEqual(tx.amount, 30.0)
        self.assertAlmostEqual(tx.metadata.estimated_energy, 3.0)

    def test_carbon_credit_goes_to_offset_pool(self):
        tx = TransactionBuilder.create_carbon_credit(self.alice.address, 50)
        self.assertEqual(tx.recipient, config.CARBON_OFFSET_POOL)
        self.assertEqual(tx.amount, 25.0)
        self.assertIsInstance(tx.metadata, CarbonCreditData)

    def test_from_dict_restores_metadata(self):
        tx = TransactionBuilder.create_energy_trade(self.alice.address, 10, 'nuclear', 10.0, 1.2)
        restored = Transaction.from_dict(tx.to_dict())
        self.assertEqual(restored.metadata, tx.metadata)
        self.assertEqual(restored.compute_hash(), tx.compute_hash())

    def test_summary(self):
        tx = TransactionBuilder.create_carbon_credit(self.alice.address, 50)
        summary = tx.summary()
        self.assertEqual(summary['carbon_amount'], "50 kg CO2")
        self.assertEqual(summary['type'], config.TX_CARBON_CREDIT)


class TestTransactionPool(unittest.TestCase):
    """Test the bounded pending pool."""

    def test_overflow_is_rejected(self):
        pool = TransactionPool(max_size=2)
        pool.add(Transaction(None, "recipient-1", 1.0))
        pool.add(Transaction(None, "recipient-2", 1.0))

        with self.assertRaises(CapacityError):
            pool.add(Transaction(None, "recipient-3", 1.0))
        self.assertEqual(len(pool), 2)
        self.assertEqual([tx.recipient for tx in pool], ["recipient-1", "recipient-2"])

    def test_drain(self):
        pool = TransactionPool(max_size=5)
        pool.add(Transaction(None, "recipient-1", 1.0))
        drained = pool.drain()
        self.assertEqual(len(drained), 1)
        self.assertEqual(len(pool), 0)


class TestValidation(unittest.TestCase):
    """Test input validation."""

    def assertInvalid(self, func, value, field):
        with self.assertRaises(ValidationError) as ctx:
            func(value)
        self.assertEqual(ctx.exception.field, field)

    def test_amount_bounds(self):
        validate_amount(config.MIN_TRANSACTION_AMOUNT)
        validate_amount(config.MAX_TRANSACTION_AMOUNT)
        self.assertInvalid(validate_amount, 0, 'amount')
        self.assertInvalid(validate_amount, -1, 'amount')
        self.assertInvalid(validate_amount, config.MAX_TRANSACTION_AMOUNT * 2, 'amount')
        self.assertInvalid(validate_amount, float('nan'), 'amount')
        self.assertInvalid(validate_amount, "10", 'amount')
        self.assertInvalid(validate_amount, True, 'amount')

    def test_resource_bounds(self):
        self.assertInvalid(validate_energy_amount, -10, 'energy_amount')
        self.assertInvalid(validate_energy_amount, config.MAX_ENERGY_AMOUNT + 1, 'energy_amount')
        self.assertInvalid(validate_compute_units, -5, 'compute_units')
        self.assertInvalid(validate_compute_units, 0.01, 'compute_units')
        self.assertInvalid(validate_carbon_amount, 0, 'carbon_amount')
        validate_energy_amount(100)
        validate_compute_units(10)
        validate_carbon_amount(50)

    def test_address(self):
        validate_address("a" * config.MIN_ADDRESS_LENGTH)
        self.assertInvalid(validate_address, "", 'address')
        self.assertInvalid(validate_address, None, 'address')
        self.assertInvalid(validate_address, "short", 'address')
        self.assertInvalid(validate_address, 12345678901, 'address')

    def test_enumerations(self):
        for source in config.ENERGY_SOURCES:
            validate_energy_source(source)
        for workload in config.AI_WORKLOAD_TYPES:
            validate_workload_type(workload)
        self.assertInvalid(validate_energy_source, 'coal', 'energy_source')
        self.assertInvalid(validate_workload_type, 'mining', 'workload_type')

    def test_efficiency_score(self):
        validate_efficiency_score(0)
        validate_efficiency_score(100)
        self.assertInvalid(validate_efficiency_score, 101, 'efficiency_score')
        self.assertInvalid(validate_efficiency_score, -1, 'efficiency_score')

    def test_metadata_must_match_kind(self):
        tx = Transaction("a" * 20, "b" * 20, 10.0, tx_type=config.TX_ENERGY_TRADE)
        self.assertInvalid(validate_transaction, tx, 'metadata')

        tx = Transaction("a" * 20, "b" * 20, 10.0, metadata=CarbonCreditData(5))
        self.assertInvalid(validate_transaction, tx, 'metadata')

    def test_unknown_kind(self):
        tx = Transaction("a" * 20, "b" * 20, 10.0, tx_type="gift")
        self.assertInvalid(validate_transaction, tx, 'tx_type')

    def test_kind_specific_fields(self):
        tx = TransactionBuilder.create_compute_allocation("a" * 20, "b" * 20, 10, 'training')
        validate_transaction(tx)
        tx.metadata.workload_type = 'mining'
        self.assertInvalid(validate_transaction, tx, 'workload_type')

    def test_mining_reward_amount_not_negative(self):
        tx = TransactionBuilder.create_mining_reward("a" * 20, 100.0, 1.0, 1)
        validate_transaction(tx)
        tx.amount = -1e9
        self.assertInvalid(validate_transaction, tx, 'amount')

    def test_resource_hints(self):
        validate_resource_hints(None)
        validate_resource_hints({'energy_source': 'renewable', 'efficiency_score': 85})
        self.assertInvalid(validate_resource_hints, {'efficiency_score': 150}, 'efficiency_score')
        self.assertInvalid(validate_resource_hints, {'energy_consumed': -1}, 'energy_consumed')


class TestEnergy(unittest.TestCase):
    """Test energy calculations and the reward schedule."""

    def test_resource_bonus_neutral(self):
        self.assertEqual(calculate_resource_bonus('mixed', 50, 'general'), 1.0)

    def test_resource_bonus_maximum(self):
        self.assertAlmostEqual(calculate_resource_bonus('renewable', 85, 'inference'), 2.34)

    def test_resource_bonus_tiers_do_not_stack(self):
        self.assertAlmostEqual(calculate_resource_bonus('nuclear', 70, 'training'), 1.2 * 1.1)
        # Thresholds are strict
        self.assertAlmostEqual(calculate_resource_bonus('fossil', 80, 'general'), 1.1)
        self.assertEqual(calculate_resource_bonus('fossil', 60, 'general'), 1.0)

    def test_tokenization_bonus(self):
        self.assertEqual(tokenization_bonus('renewable'), 1.5)
        self.assertEqual(tokenization_bonus('nuclear'), 1.2)
        self.assertEqual(tokenization_bonus('mixed'), 1.0)
        self.assertEqual(tokenization_bonus('fossil'), 1.0)

    def test_reward_halving(self):
        base = config.BASE_MINING_REWARD
        interval = config.HALVING_INTERVAL
        self.assertEqual(calculate_mining_reward(0), base)
        self.assertEqual(calculate_mining_reward(interval - 1), base)
        self.assertEqual(calculate_mining_reward(interval), base / 2)
        self.assertEqual(calculate_mining_reward(2 * interval), base / 4)

    def test_reward_floor(self):
        self.assertEqual(calculate_mining_reward(10 ** 12), config.MIN_MINING_REWARD)
        self.assertEqual(calculate_mining_reward(40, base_reward=100.0, halving_interval=1,
                                                 min_reward=0.5), 0.5)

    def test_compute_cost(self):
        cost, energy = calculate_compute_cost(10)
        self.assertAlmostEqual(cost, 30.0)
        self.assertAlmostEqual(energy, 3.0)

    def test_carbon_footprint(self):
        self.assertAlmostEqual(calculate_carbon_footprint(100, 'mixed'), 50.0)
        self.assertAlmostEqual(calculate_carbon_footprint(100, 'renewable'), 5.0)
        self.assertAlmostEqual(calculate_carbon_footprint(100, 'fossil'), 75.0)

    def test_transaction_fee(self):
        self.assertAlmostEqual(calculate_transaction_fee(1000), 1.0)

    def test_energy_consumption_estimate(self):
        # 250 W for one hour
        self.assertAlmostEqual(estimate_energy_consumption(3600), 0.25)


if __name__ == '__main__':
    unittest.main()
