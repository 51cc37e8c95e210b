"""
EnergyLedger Miner - proof-of-work sealing and difficulty control

Mining flow:
1. The ledger builds a block from the pending pool
2. seal() searches nonces until the digest has `difficulty` leading zero hex chars
3. The seal duration feeds the DifficultyController's sliding window
4. Every DIFFICULTY_ADJUSTMENT_INTERVAL blocks the difficulty moves by at most one

The search has no iteration cap. It checks an optional stop event every
check_interval nonces so shutdown is never blocked indefinitely.
"""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, Optional

from . import config
from .crypto_utils import mining_hash, check_difficulty
from .energy import estimate_energy_consumption
from .errors import MiningCancelled

logger = logging.getLogger(__name__)


@dataclass
class MiningMetrics:
    """Performance of a single seal."""
    miner_address: str = ""
    mining_time: float = 0.0
    energy_used: float = 0.0          # kWh, estimated
    attempts: int = 0
    hash_rate: float = 0.0
    timestamp: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def seal(block, difficulty: int, miner_address: str = "",
         stop_event: Optional[threading.Event] = None,
         check_interval: int = config.MINING_CHECK_INTERVAL) -> MiningMetrics:
    """
    Seal a block by finding a nonce whose digest meets the difficulty.

    Args:
        block: Block to seal (nonce search starts from block.nonce)
        difficulty: Required number of leading zero hex characters
        miner_address: Recorded in the mining metrics
        stop_event: Set it to cancel the search
        check_interval: Nonces tried between stop_event checks

    Returns:
        MiningMetrics, also stored on block.mining_metrics

    Raises:
        MiningCancelled: If stop_event was set before a nonce was found.
            block.nonce is left at the next untried nonce; block.hash is untouched.
    """
    start_time = time.time()
    header = block.compute_header()
    attempts = 0
    nonce = block.nonce

    while True:
        if stop_event is not None and attempts % check_interval == 0 and stop_event.is_set():
            block.nonce = nonce
            logger.warning(f"Mining cancelled after {attempts:,} attempts")
            raise MiningCancelled(f"Mining cancelled after {attempts} attempts")

        hash_value = mining_hash(f"{header}{nonce}", block.previous_hash, block.algorithm)
        attempts += 1

        if check_difficulty(hash_value, difficulty):
            break

        nonce += 1

    elapsed = time.time() - start_time
    block.nonce = nonce
    block.hash = hash_value
    block.difficulty = difficulty

    metrics = MiningMetrics(
        miner_address=miner_address,
        mining_time=elapsed,
        energy_used=estimate_energy_consumption(elapsed),
        attempts=attempts,
        hash_rate=attempts / elapsed if elapsed > 0 else 0.0,
        timestamp=time.time()
    )
    block.mining_metrics = metrics

    logger.debug(f"Sealed in {elapsed:.3f}s, {attempts:,} attempts, "
                 f"{metrics.hash_rate:.2f} H/s")
    return metrics


class DifficultyController:
    """
    Adjusts proof-of-work difficulty from observed seal times.

    A hysteresis band, not a proportional controller: difficulty rises by one
    when blocks come in under half the target time, falls by one when they
    take more than twice the target, and is otherwise left alone.
    """

    def __init__(self, initial: int = config.INITIAL_DIFFICULTY,
                 minimum: int = config.MIN_DIFFICULTY,
                 maximum: int = config.MAX_DIFFICULTY,
                 interval: int = config.DIFFICULTY_ADJUSTMENT_INTERVAL,
                 target_block_time: float = config.TARGET_BLOCK_TIME):
        self.difficulty = initial
        self.minimum = minimum
        self.maximum = maximum
        self.interval = interval
        self.target_block_time = target_block_time
        self.block_times: deque = deque(maxlen=2 * interval)

    def record(self, duration: float) -> None:
        """Record a seal duration in seconds."""
        self.block_times.append(duration)

    def adjust(self, chain_length: int) -> int:
        """
        Re-evaluate difficulty after a block is appended.

        Only acts when chain_length is a multiple of the adjustment interval
        and at least two samples exist.
        """
        if chain_length % self.interval != 0 or len(self.block_times) < 2:
            return self.difficulty

        recent = list(self.block_times)[-self.interval:]
        average = sum(recent) / len(recent)

        if average < self.target_block_time / 2:
            new_difficulty = min(self.difficulty + 1, self.maximum)
        elif average > self.target_block_time * 2:
            new_difficulty = max(self.difficulty - 1, self.minimum)
        else:
            new_difficulty = self.difficulty

        if new_difficulty != self.difficulty:
            logger.info(f"Difficulty adjusted {self.difficulty} -> {new_difficulty} "
                        f"(avg block time {average:.2f}s)")
        self.difficulty = new_difficulty
        return new_difficulty

    def average_block_time(self) -> float:
        if not self.block_times:
            return 0.0
        return sum(self.block_times) / len(self.block_times)

    def __repr__(self) -> str:
        return (f"DifficultyController(difficulty={self.difficulty}, "
                f"range=[{self.minimum}, {self.maximum}], samples={len(self.block_times)})")


class MiningJob:
    """
    Runs a mining call on a background thread.

    The target receives the job's stop event; cancel() sets it. result()
    waits for completion and re-raises whatever the target raised,
    including MiningCancelled.
    """

    def __init__(self, target: Callable[[threading.Event], Any], name: str = "mining-job"):
        self._target = target
        self._stop_event = threading.Event()
        self._finished = threading.Event()
        self._result: Any = None
        self._error: Optional[BaseException] = None
        self._thread = threading.Thread(target=self._run, name=name)
        self._thread.daemon = True

    def start(self) -> 'MiningJob':
        self._thread.start()
        return self

    def _run(self):
        try:
            self._result = self._target(self._stop_event)
        except Exception as e:
            self._error = e
        finally:
            self._finished.set()

    def cancel(self) -> None:
        """Ask the nonce search to stop."""
        self._stop_event.set()

    def done(self) -> bool:
        return self._finished.is_set()

    @property
    def cancelled(self) -> bool:
        return isinstance(self._error, MiningCancelled)

    def result(self, timeout: Optional[float] = None) -> Any:
        """
        Wait for the job and return the mined block.

        Raises:
            TimeoutError: If the job has not finished within timeout
        """
        if not self._finished.wait(timeout):
            raise TimeoutError("Mining job still running")
        if self._error is not None:
            raise self._error
        return self._result

    def __repr__(self) -> str:
        state = "done" if self.done() else "running"
        return f"MiningJob({self._thread.name}, {state})"
