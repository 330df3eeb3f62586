"""Invite membership proofs.

Invite entries are committed as a Merkle tree over leaves

    leaf = keccak256(abi.encode(string code_hash, uint256 min, uint256 max))

with sibling pairs sorted before hashing, so a proof is just the list of
siblings from leaf to root and verification does not need the leaf index.
The ABI encoding tags every field with its type and width, so a code hash can
never be confused with a bound.

This module has two halves:
- verify_invite(): the stateless check the round runs on every deposit
- InviteMerkleTree: the off-engine builder operators use to publish a root
  and hand out proofs
"""

import logging
from typing import Dict, List, Optional, Sequence, Union

from eth_abi import encode
from eth_utils import keccak

from .schemas.base import InviteCodeHash
from .schemas.invites import InviteCodeRange, InviteTicket

logger = logging.getLogger(__name__)

HASH_LENGTH = 32

BytesLike = Union[bytes, bytearray, str]


# =============================================================================
# Hashing
# =============================================================================

def hash_invite_code(code: str) -> str:
    """Hash a plaintext invite code into the form committed in the tree.

    Example:
        hash_invite_code("aB3dE6gH") → "5f0e...c2" (64 hex chars)
    """
    return keccak(text=code).hex()


def invite_leaf(code_hash: str, min_investment: int, max_investment: int) -> bytes:
    """Compute the tree leaf for an invite entry."""
    return keccak(
        encode(["string", "uint256", "uint256"], [code_hash, min_investment, max_investment])
    )


def hash_pair(a: bytes, b: bytes) -> bytes:
    """Hash two nodes in sorted order."""
    if a <= b:
        return keccak(a + b)
    return keccak(b + a)


def to_bytes32(value: BytesLike) -> Optional[bytes]:
    """Coerce a 32-byte node from bytes or hex (with or without 0x).

    Returns:
        The 32 bytes, or None if value is not exactly 32 bytes of valid hex
    """
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str):
        text = value[2:] if value.startswith(("0x", "0X")) else value
        try:
            raw = bytes.fromhex(text)
        except ValueError:
            return None
    else:
        return None
    return raw if len(raw) == HASH_LENGTH else None


def to_hex(node: bytes) -> str:
    return "0x" + node.hex()


# =============================================================================
# Verification
# =============================================================================

def process_proof(leaf: bytes, proof: Sequence[bytes]) -> bytes:
    """Fold a proof into the root it implies for leaf."""
    computed = leaf
    for sibling in proof:
        computed = hash_pair(computed, sibling)
    return computed


def verify_invite(
    code_hash: str,
    min_investment: int,
    max_investment: int,
    proof: Sequence[BytesLike],
    root: BytesLike,
) -> bool:
    """Check that an invite entry belongs to the committed set.

    Args:
        code_hash: Hex keccak hash of the invite code
        min_investment: Minimum bound exactly as committed
        max_investment: Maximum bound exactly as committed
        proof: Sibling hashes, leaf to root
        root: Committed Merkle root

    Returns:
        True iff the recomputed root matches. Malformed proofs, bounds outside
        uint256 or roots that are not 32 bytes verify as False.
    """
    expected_root = to_bytes32(root)
    if expected_root is None:
        logger.debug("Rejecting invite %s: malformed root", code_hash)
        return False

    siblings = []
    for node in proof:
        sibling = to_bytes32(node)
        if sibling is None:
            logger.debug("Rejecting invite %s: malformed proof element %r", code_hash, node)
            return False
        siblings.append(sibling)

    if not (0 <= min_investment < 2 ** 256 and 0 <= max_investment < 2 ** 256):
        return False

    leaf = invite_leaf(code_hash, min_investment, max_investment)
    return process_proof(leaf, siblings) == expected_root


# =============================================================================
# Tree Builder
# =============================================================================

class InviteMerkleTree:
    """Merkle tree over invite entries with sorted-pair hashing.

    Leaves keep insertion order and are not re-hashed. When a layer has an odd
    number of nodes the last one is promoted unchanged to the next layer.

    Example:
        ranges = {
            hash_invite_code("aB3dE6gH"): InviteCodeRange(
                min_investment=to_atto(100), max_investment=to_atto(1000)
            ),
        }
        tree = InviteMerkleTree.from_ranges(ranges)
        config = RoundConfig(merkle_root=tree.hex_root, ...)
        ticket = tree.ticket(hash_invite_code("aB3dE6gH"))
    """

    def __init__(self, leaves: Sequence[bytes]):
        if not leaves:
            raise ValueError("Cannot build a Merkle tree without leaves")
        for leaf in leaves:
            if len(leaf) != HASH_LENGTH:
                raise ValueError(f"Leaves must be {HASH_LENGTH} bytes, got {len(leaf)}")

        self.layers: List[List[bytes]] = [list(leaves)]
        while len(self.layers[-1]) > 1:
            layer = self.layers[-1]
            parents = []
            for i in range(0, len(layer), 2):
                if i + 1 < len(layer):
                    parents.append(hash_pair(layer[i], layer[i + 1]))
                else:
                    parents.append(layer[i])
            self.layers.append(parents)

        self._entries: Dict[str, InviteCodeRange] = {}

    @classmethod
    def from_ranges(cls, ranges: Dict[InviteCodeHash, InviteCodeRange]) -> 'InviteMerkleTree':
        """Build the tree for a {code_hash: range} mapping (insertion ordered)."""
        tree = cls([
            invite_leaf(code_hash, r.min_investment, r.max_investment)
            for code_hash, r in ranges.items()
        ])
        tree._entries = dict(ranges)
        return tree

    @property
    def leaves(self) -> List[bytes]:
        return self.layers[0]

    @property
    def root(self) -> bytes:
        return self.layers[-1][0]

    @property
    def hex_root(self) -> str:
        return to_hex(self.root)

    def proof(self, leaf: bytes) -> List[bytes]:
        """Sibling path for leaf, from the leaf layer up.

        Raises:
            KeyError: If leaf is not in the tree
        """
        try:
            index = self.leaves.index(leaf)
        except ValueError:
            raise KeyError(f"Leaf {to_hex(leaf)} not found in tree") from None

        path = []
        for layer in self.layers[:-1]:
            sibling_index = index ^ 1
            if sibling_index < len(layer):
                path.append(layer[sibling_index])
            index //= 2
        return path

    def hex_proof(self, leaf: bytes) -> List[str]:
        return [to_hex(node) for node in self.proof(leaf)]

    def ticket(self, code_hash: InviteCodeHash) -> InviteTicket:
        """Build the admission ticket for a committed code hash.

        Raises:
            KeyError: If the tree was not built from ranges or code_hash is unknown
        """
        if code_hash not in self._entries:
            raise KeyError(f"Invite code hash '{code_hash}' not committed in this tree")
        entry = self._entries[code_hash]
        leaf = invite_leaf(code_hash, entry.min_investment, entry.max_investment)
        return InviteTicket(
            code_hash=code_hash,
            min_investment=entry.min_investment,
            max_investment=entry.max_investment,
            proof=self.hex_proof(leaf),
        )

    def code_hashes(self) -> List[str]:
        return list(self._entries.keys())

    def __len__(self) -> int:
        return len(self.leaves)
