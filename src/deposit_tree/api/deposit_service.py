"""
Deposit Service Module

This module provides the service layer shared by the CLI and the REST API.
It owns a single deposit accumulator, serializes every state change behind
one lock, emits a DepositEvent per accepted deposit and optionally persists
the accumulator state and the event log to disk.
"""

import json
import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv

from ..indexer import DepositIndexer
from ..main import ProofResult, generate_proof_from_indexer, load_state_file, save_state_file
from ..ssz import (
    DepositData,
    DepositEvent,
    IncrementalMerkleAccumulator,
    CapacityExceededError,
    bytes_to_hex,
)

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class DepositServiceError(Exception):
    """Custom exception for deposit service operations."""
    pass


@dataclass
class DepositReceipt:
    """Result of one accepted deposit."""
    index: int
    deposit_count: int
    deposit_root: bytes
    leaf: bytes
    event: DepositEvent

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "deposit_count": self.deposit_count,
            "deposit_root": bytes_to_hex(self.deposit_root),
            "leaf": bytes_to_hex(self.leaf),
            "event": self.event.to_dict(),
        }


class DepositService:
    """
    Service for accepting deposits and answering root and proof queries.

    State and event log paths default to the DEPOSIT_TREE_STATE_FILE and
    DEPOSIT_TREE_EVENT_LOG environment variables; when neither is set the
    service runs purely in memory.
    """

    def __init__(
        self,
        state_file: Optional[str] = None,
        event_log: Optional[str] = None,
    ):
        """
        Initialize the deposit service.

        Args:
            state_file: JSON file holding the accumulator state. If None, uses env vars.
            event_log: JSON Lines file holding deposit events. If None, uses env vars.

        Raises:
            DepositServiceError: If persisted state and event log disagree
        """
        self.state_file = state_file or os.getenv("DEPOSIT_TREE_STATE_FILE") or None
        self.event_log = event_log or os.getenv("DEPOSIT_TREE_EVENT_LOG") or None

        self._lock = threading.Lock()
        self._accumulator = IncrementalMerkleAccumulator()
        self._indexer = DepositIndexer()

        self._load()

        logger.info(
            f"Initialized DepositService with {self._accumulator.deposit_count} deposits "
            f"(state_file={self.state_file}, event_log={self.event_log})"
        )

    def _load(self):
        """Restore the event log and accumulator state if they exist on disk."""
        try:
            if self.event_log and os.path.exists(self.event_log):
                self._indexer = DepositIndexer.from_log_file(self.event_log)
                self._accumulator = IncrementalMerkleAccumulator.from_dict(
                    self._indexer.accumulator.to_dict()
                )

            if self.state_file and os.path.exists(self.state_file):
                accumulator = load_state_file(self.state_file)
                if self.event_log and accumulator.deposit_count != self._indexer.deposit_count:
                    raise DepositServiceError(
                        f"State file holds {accumulator.deposit_count} deposits but event log "
                        f"holds {self._indexer.deposit_count}"
                    )
                if self.event_log and accumulator.root() != self._indexer.root():
                    raise DepositServiceError("State file root does not match the event log")
                self._accumulator = accumulator
        except (ValueError, KeyError, OSError) as e:
            logger.error(f"Failed to load persisted deposit state: {e}")
            raise DepositServiceError(f"Failed to load persisted deposit state: {e}") from e

    @property
    def has_event_log(self) -> bool:
        """Whether deposit events are being tracked (always true in memory mode)."""
        return self.event_log is not None or self.state_file is None

    def submit_deposit(
        self,
        pubkey: bytes,
        withdrawal_credentials: bytes,
        amount: int,
        signature: bytes,
    ) -> DepositReceipt:
        """
        Validate a deposit record, append its leaf and emit its event.

        Args:
            pubkey: 48-byte BLS public key (bytes or hex)
            withdrawal_credentials: 32-byte withdrawal credentials (bytes or hex)
            amount: Deposit amount in Gwei
            signature: 96-byte BLS signature (bytes or hex)

        Returns:
            DepositReceipt for the accepted deposit

        Raises:
            MalformedRecordError: If a field has the wrong size
            CapacityExceededError: If the tree is full
        """
        deposit = DepositData(
            pubkey=pubkey,
            withdrawal_credentials=withdrawal_credentials,
            amount=amount,
            signature=signature,
        )
        leaf = deposit.merkle_root()

        with self._lock:
            index = self._accumulator.deposit_count
            # Append to a copy; the live tree only changes once the deposit is on disk
            accumulator = IncrementalMerkleAccumulator.from_snapshot(
                self._accumulator.branch, index
            )
            try:
                deposit_count, deposit_root = accumulator.append(leaf)
            except CapacityExceededError as e:
                logger.error(f"Rejected deposit: {e}")
                raise

            event = DepositEvent.from_deposit(deposit, index)
            self._persist(event, accumulator)

            self._accumulator = accumulator
            if self.has_event_log:
                self._indexer.add_event(event)

        logger.info(
            f"Accepted deposit {index} for pubkey {bytes_to_hex(deposit.pubkey)[:18]}..., "
            f"new root {bytes_to_hex(deposit_root)}"
        )
        return DepositReceipt(
            index=index,
            deposit_count=deposit_count,
            deposit_root=deposit_root,
            leaf=leaf,
            event=event,
        )

    def submit_deposit_data(self, deposit: Dict[str, Any]) -> DepositReceipt:
        """Submit a deposit given as a JSON-style dictionary."""
        data = DepositData.from_dict(deposit)
        return self.submit_deposit(
            data.pubkey, data.withdrawal_credentials, data.amount, data.signature
        )

    def _persist(self, event: DepositEvent, accumulator: IncrementalMerkleAccumulator):
        """
        Append the event to the log and rewrite the state file.

        If either write fails the event log is cut back to its previous
        length, so the files on disk never hold a deposit the service rejected.
        """
        log_size = None
        try:
            if self.event_log:
                log_size = os.path.getsize(self.event_log) if os.path.exists(self.event_log) else 0
                with open(self.event_log, "a") as f:
                    f.write(json.dumps(event.to_dict()) + "\n")
            if self.state_file:
                save_state_file(accumulator, self.state_file)
        except Exception as e:
            logger.error(f"Failed to persist deposit {event.deposit_index}: {e}")
            if log_size is not None:
                self._truncate_event_log(log_size)
            raise

    def _truncate_event_log(self, size: int):
        if not os.path.exists(self.event_log):
            return
        try:
            with open(self.event_log, "r+") as f:
                f.truncate(size)
        except OSError as e:
            logger.error(f"Could not roll back event log {self.event_log}: {e}")

    def get_deposit_root(self) -> bytes:
        with self._lock:
            return self._accumulator.root()

    def get_deposit_count(self) -> int:
        with self._lock:
            return self._accumulator.deposit_count

    def get_branch(self) -> Tuple[bytes, ...]:
        """Snapshot of the accumulator branch, lowest height first."""
        with self._lock:
            return self._accumulator.branch

    def get_state(self) -> Dict[str, Any]:
        """Snapshot of the persisted layout plus the current root."""
        with self._lock:
            state = self._accumulator.to_dict()
            state["deposit_root"] = bytes_to_hex(self._accumulator.root())
            state["deposit_count_bytes"] = bytes_to_hex(self._accumulator.deposit_count_bytes())
        return state

    def get_events(self, start: int = 0, end: Optional[int] = None) -> List[DepositEvent]:
        """Return logged events in [start, end)."""
        self._require_event_log()
        with self._lock:
            return self._indexer.events[start:end]

    def get_deposit_proof(
        self, deposit_index: int, deposit_count: Optional[int] = None
    ) -> ProofResult:
        """
        Generate an inclusion proof for a deposit from the event log.

        Raises:
            DepositServiceError: If no event log is tracked
            ValueError: If the index or count is out of range
        """
        self._require_event_log()
        with self._lock:
            return generate_proof_from_indexer(self._indexer, deposit_index, deposit_count)

    def _require_event_log(self):
        if not self.has_event_log:
            raise DepositServiceError(
                "Deposit events are not tracked: configure DEPOSIT_TREE_EVENT_LOG"
            )

