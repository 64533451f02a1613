"""
Deposit Tree - Main proof generation module

This module contains the functions used by both the CLI and the API to
rebuild the deposit tree from an event log and to generate deposit
inclusion proofs.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .indexer import DepositIndexer
from .ssz import (
    IncrementalMerkleAccumulator,
    DepositData,
    bytes_to_hex,
)

logger = logging.getLogger(__name__)


@dataclass
class ProofResult:
    """Container for proof generation results."""
    proof: List[bytes]
    root: bytes
    leaf: bytes
    metadata: Dict[str, Any]


@dataclass
class ReplayResult:
    """Container for the tree rebuilt from an event log."""
    root: bytes
    deposit_count: int
    accumulator: IncrementalMerkleAccumulator


def load_state_file(state_file: str) -> IncrementalMerkleAccumulator:
    """Load an accumulator from a JSON state file."""
    with open(state_file, "r") as f:
        return IncrementalMerkleAccumulator.from_dict(json.load(f))


def save_state_file(accumulator: IncrementalMerkleAccumulator, state_file: str) -> None:
    """
    Write the accumulator's persisted layout to a JSON state file.

    The layout is written to a temporary file in the same directory and then
    moved over `state_file`, so the previous state stays readable until the
    new one is complete.
    """
    directory = os.path.dirname(os.path.abspath(state_file))
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".deposit-state-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            json.dump(accumulator.to_dict(), f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, state_file)
    except Exception:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def replay_event_log(event_log: str) -> ReplayResult:
    """Rebuild the deposit tree from a JSON Lines event log."""
    indexer = DepositIndexer.from_log_file(event_log)
    return ReplayResult(
        root=indexer.root(),
        deposit_count=indexer.deposit_count,
        accumulator=indexer.accumulator,
    )


def generate_deposit_proof(
    event_log: str, deposit_index: int, deposit_count: Optional[int] = None
) -> ProofResult:
    """
    Generate a Merkle proof for a deposit.

    Args:
        event_log: Path to the JSON Lines deposit event log
        deposit_index: Index of the deposit to prove
        deposit_count: Tree size to prove against (defaults to the whole log)

    Returns:
        ProofResult with the proof, the deposit root it verifies against,
        the deposit leaf and metadata
    """
    indexer = DepositIndexer.from_log_file(event_log)
    return generate_proof_from_indexer(indexer, deposit_index, deposit_count)


def generate_proof_from_indexer(
    indexer: DepositIndexer, deposit_index: int, deposit_count: Optional[int] = None
) -> ProofResult:
    """Generate a deposit proof from an already populated indexer."""
    if deposit_count is None:
        deposit_count = indexer.deposit_count

    proof = indexer.get_proof(deposit_index, deposit_count)
    root = indexer.root_at(deposit_count)
    leaf = indexer.leaves[deposit_index]
    deposit: DepositData = indexer.events[deposit_index].to_deposit_data()

    logger.info(
        f"Generated proof for deposit {deposit_index} against {deposit_count} deposits"
    )

    metadata = {
        "proof_length": len(proof),
        "deposit_index": deposit_index,
        "deposit_count": deposit_count,
        "pubkey": bytes_to_hex(deposit.pubkey),
        "amount": deposit.amount,
    }
    return ProofResult(proof=proof, root=root, leaf=leaf, metadata=metadata)
