"""
Reverse index from address to transaction locations in the sealed chain.
"""

from collections import defaultdict
from typing import Dict, List, Tuple

Location = Tuple[int, int]  # (block position, transaction position)


class AddressIndex:
    """
    Maps each address to the (block, transaction) positions that reference it.

    Entries are appended as blocks are sealed and never pruned.
    """

    def __init__(self):
        self._locations: Dict[str, List[Location]] = defaultdict(list)

    def add_block(self, block_position: int, block) -> None:
        """Index every transaction of a newly appended block."""
        for tx_position, tx in enumerate(block.transactions):
            location = (block_position, tx_position)
            if tx.sender is not None:
                self._locations[tx.sender].append(location)
            if tx.recipient != tx.sender:
                self._locations[tx.recipient].append(location)

    def locations(self, address: str) -> List[Location]:
        return list(self._locations.get(address, ()))

    def addresses(self) -> List[str]:
        return list(self._locations)

    def __contains__(self, address: str) -> bool:
        return address in self._locations

    def __len__(self) -> int:
        return len(self._locations)

    def __repr__(self) -> str:
        return f"AddressIndex({len(self)} addresses)"
