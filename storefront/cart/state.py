"""Per-session cart state and mutation records"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from commerce.models import Cart, CartResult, MutationKind, UserError


class OutcomeStatus(str, Enum):
    """What happened to a submitted mutation"""
    APPLIED = "applied"
    SUPERSEDED = "superseded"
    FAILED = "failed"


@dataclass
class PendingMutation:
    """Mutation submitted but not yet confirmed by the cart service"""
    key: str
    kind: MutationKind
    payload: BaseModel
    identifiers: list[str]
    generation: int
    sequence: int


@dataclass
class MutationOutcome:
    """Result of one submission"""
    key: str
    kind: MutationKind
    status: OutcomeStatus
    errors: list[UserError] = field(default_factory=list)
    failure: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "kind": self.kind.value,
            "status": self.status.value,
            "errors": [error.model_dump() for error in self.errors],
            "failure": self.failure,
        }


@dataclass
class CartState:
    """
    Everything the storefront knows about one session's cart.

    ``snapshot`` is the last cart returned by the cart service. Pending
    mutations, generations and in-flight tasks are indexed by mutation key.
    ``snapshot_sequence`` is the submission sequence of the request whose
    response produced the snapshot.
    """
    cart_id: Optional[str] = None
    snapshot: Cart = field(default_factory=Cart)
    snapshot_sequence: int = 0
    pending: dict[str, PendingMutation] = field(default_factory=dict)
    generations: dict[str, int] = field(default_factory=dict)
    inflight: dict[str, asyncio.Task] = field(default_factory=dict)
    errors: dict[str, list[UserError]] = field(default_factory=dict)
    error_lines: dict[str, list[str]] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)
    sequence: int = 0
    cart_creation: Optional["asyncio.Future[CartResult]"] = None

    def next_generation(self, key: str) -> int:
        self.generations[key] = self.generations.get(key, 0) + 1
        return self.generations[key]

    def is_latest(self, key: str, generation: int) -> bool:
        return self.generations.get(key) == generation

    def pending_identifiers(self) -> set[str]:
        return {
            identifier
            for mutation in self.pending.values()
            for identifier in mutation.identifiers
        }

    def settle(self, key: str) -> None:
        """Forget the pending mutation and task for a key"""
        self.pending.pop(key, None)
        self.inflight.pop(key, None)

    def record_errors(self, key: str, errors: list[UserError], line_ids: list[str]) -> None:
        """Keep field errors for a key; ``line_ids`` are the cart lines they refer to"""
        self.errors[key] = list(errors)
        self.error_lines[key] = list(line_ids)

    def discard_errors(self, key: str) -> None:
        self.errors.pop(key, None)
        self.error_lines.pop(key, None)

    def prune_errors(self) -> None:
        """Drop errors about lines that are no longer in the snapshot"""
        live = {line.id for line in self.snapshot.lines}
        for key, line_ids in list(self.error_lines.items()):
            if line_ids and live.isdisjoint(line_ids):
                self.discard_errors(key)

    def forget_cart(self, cart_id: Optional[str] = None) -> None:
        """Start over with no cart; ``cart_id`` limits this to that cart"""
        if cart_id is not None and self.cart_id not in (None, cart_id):
            return
        self.cart_id = None
        self.cart_creation = None
        self.snapshot = Cart()
