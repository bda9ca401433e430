# athletehub/services/connections.py
"""
Peer connections between users.

A connection between A and B is stored as two mirrored halves,
``connections/A/B`` and ``connections/B/A``. Each half carries the other
party's role (``type``), the pair ``status`` and the initiator
(``requested_by``). The halves are only ever written together through
``RecordStore.write_many``, so callers see one edge.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Iterator, Optional, Tuple

from loguru import logger

from athletehub import settings
from athletehub.db import CONNECTIONS, USERS
from athletehub.db.store import RecordStore
from athletehub.errors import Conflict, InvalidArgument, NotFound

REQUESTED = "requested"
APPROVED = "approved"

# '/' separates owner and other in the record id
_ID_RE = re.compile(r"^[A-Za-z0-9_.:@-]{1,128}$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def pair_key(owner: str, other: str) -> Tuple[str, str]:
    return CONNECTIONS, f"{owner}/{other}"


@dataclass(frozen=True)
class ConnectionEntry:
    """One user's half of a pair, seen from that user."""
    other: str
    type: str
    status: str
    requested_by: str

    @staticmethod
    def from_record(record: dict) -> "ConnectionEntry":
        return ConnectionEntry(
            other=record["other"],
            type=record.get("type") or "unknown",
            status=record["status"],
            requested_by=record["requested_by"],
        )

    def to_dict(self) -> dict:
        return {
            "user_id": self.other,
            "type": self.type,
            "status": self.status,
            "requested_by": self.requested_by,
        }


@dataclass(frozen=True)
class Candidate:
    user_id: str
    name: Optional[str]
    role: Optional[str]
    # None: no pair, "requested": sent by the viewer, "incoming": sent to the viewer
    status: Optional[str] = None

    def to_dict(self) -> dict:
        return {"user_id": self.user_id, "name": self.name, "role": self.role, "status": self.status}


class ConnectionScan:
    """Lazy, restartable pass over a user's pairs; each iteration re-reads the store."""

    def __init__(self, graph: "ConnectionGraph", user: str, keep: Callable[[ConnectionEntry], bool]):
        self._graph = graph
        self._user = user
        self._keep = keep

    def __iter__(self) -> Iterator[ConnectionEntry]:
        for entry in self._graph.pairs(self._user):
            if self._keep(entry):
                yield entry


@dataclass(frozen=True)
class ConnectionListing:
    incoming: ConnectionScan
    approved: ConnectionScan


class ConnectionGraph:
    def __init__(self, store: RecordStore):
        self.store = store

    # --- validation ------------------------------------------------------------
    @staticmethod
    def check_id(value: str, field: str) -> str:
        if not isinstance(value, str) or not _ID_RE.match(value):
            raise InvalidArgument(f"Malformed {field}")
        return value

    @staticmethod
    def _check_role(value: str, field: str) -> str:
        role = (value or "").strip().lower()
        if role not in settings.ROLES:
            raise InvalidArgument(f"Unknown {field}: {value!r}")
        return role

    # --- pair loading + read repair ----------------------------------------------
    def _load_pair(self, a: str, b: str) -> Optional[Tuple[dict, dict]]:
        """
        Return ``(half_a, half_b)`` or None when no edge exists.

        Damaged pairs are repaired before returning: an orphaned half is
        removed, halves that disagree on the initiator are both removed, and
        a pair left half-approved is completed to approved.
        """
        key_ab, key_ba = pair_key(a, b), pair_key(b, a)
        half_ab = self.store.get(*key_ab)
        half_ba = self.store.get(*key_ba)

        if half_ab is None and half_ba is None:
            return None

        if half_ab is None or half_ba is None:
            orphan = key_ab if half_ab is not None else key_ba
            logger.warning(f"removing orphaned connection half {orphan[1]}")
            self.store.write_many({orphan: None})
            return None

        if half_ab.get("requested_by") != half_ba.get("requested_by") or \
                half_ab.get("requested_by") not in (a, b):
            logger.warning(f"removing connection {a}<->{b} with mismatched initiator")
            self.store.write_many({key_ab: None, key_ba: None})
            return None

        if half_ab.get("status") != half_ba.get("status"):
            logger.warning(f"completing half-approved connection {a}<->{b}")
            now = _utcnow()
            half_ab = {**half_ab, "status": APPROVED, "updated_at": now}
            half_ba = {**half_ba, "status": APPROVED, "updated_at": now}
            self.store.write_many({key_ab: half_ab, key_ba: half_ba})

        return half_ab, half_ba

    # --- operations ------------------------------------------------------------
    def request_connection(self, initiator: str, target: str, initiator_role: str, target_role: str) -> None:
        self.check_id(initiator, "initiator id")
        self.check_id(target, "target id")
        if initiator == target:
            raise InvalidArgument("Cannot connect with yourself")
        initiator_role = self._check_role(initiator_role, "initiator role")
        target_role = self._check_role(target_role, "target role")

        if self._load_pair(initiator, target) is not None:
            raise Conflict("A connection with this user already exists")

        now = _utcnow()
        base = {"status": REQUESTED, "requested_by": initiator, "created_at": now, "updated_at": now}
        self.store.write_many({
            pair_key(initiator, target): {**base, "owner": initiator, "other": target, "type": target_role},
            pair_key(target, initiator): {**base, "owner": target, "other": initiator, "type": initiator_role},
        })
        logger.info(f"connection requested {initiator} -> {target}")

    def approve_connection(self, approver: str, requester: str) -> None:
        self.check_id(approver, "approver id")
        self.check_id(requester, "requester id")
        if approver == requester:
            raise InvalidArgument("Cannot approve a connection with yourself")

        pair = self._load_pair(approver, requester)
        if pair is None or pair[0]["status"] != REQUESTED:
            raise NotFound("No pending connection request from this user")

        half_approver, half_requester = pair
        if half_approver["requested_by"] != requester:
            raise InvalidArgument("You cannot approve your own connection request")

        now = _utcnow()
        # only halves still holding this very request may flip; a pair removed
        # in the meantime must stay removed
        key_ab, key_ba = pair_key(approver, requester), pair_key(requester, approver)
        guards = {
            key_ab: {"requested_by": requester, "created_at": half_approver.get("created_at")},
            key_ba: {"requested_by": requester, "created_at": half_requester.get("created_at")},
        }
        try:
            self.store.write_many({
                key_ab: {**half_approver, "status": APPROVED, "updated_at": now},
                key_ba: {**half_requester, "status": APPROVED, "updated_at": now},
            }, guards=guards)
        except NotFound:
            logger.warning(f"connection {requester} <-> {approver} changed during approve")
            # clears a half left behind by a concurrent cancel
            self._load_pair(approver, requester)
            raise NotFound("No pending connection request from this user")
        logger.info(f"connection approved {requester} <-> {approver}")

    def cancel_connection(self, actor: str, other: str) -> None:
        self.check_id(actor, "actor id")
        self.check_id(other, "other id")

        if self._load_pair(actor, other) is None:
            raise NotFound("No connection with this user")

        self.store.write_many({pair_key(actor, other): None, pair_key(other, actor): None})
        logger.info(f"connection removed {actor} <-> {other}")

    # --- queries ---------------------------------------------------------------
    def pairs(self, user: str) -> Iterator[ConnectionEntry]:
        """Every edge of ``user`` in any status, repaired on the way."""
        self.check_id(user, "user id")
        # drain the cursor first; repairs below write to the same collection
        others = [half["other"] for _, half in self.store.scan_all(CONNECTIONS, where={"owner": user})]
        for other in others:
            pair = self._load_pair(user, other)
            if pair is not None:
                yield ConnectionEntry.from_record(pair[0])

    def list_connections(self, user: str) -> ConnectionListing:
        self.check_id(user, "user id")
        return ConnectionListing(
            incoming=ConnectionScan(
                self, user, lambda e: e.status == REQUESTED and e.requested_by != user
            ),
            approved=ConnectionScan(self, user, lambda e: e.status == APPROVED),
        )

    def list_candidates(self, user: str) -> Iterator[Candidate]:
        """Other users not yet approved; pending pairs keep a status for the UI."""
        self.check_id(user, "user id")
        edges: Dict[str, ConnectionEntry] = {e.other: e for e in self.pairs(user)}

        for uid, record in self.store.scan_all(USERS):
            if uid == user:
                continue
            entry = edges.get(uid)
            if entry is not None and entry.status == APPROVED:
                continue
            status = None
            if entry is not None:
                status = REQUESTED if entry.requested_by == user else "incoming"
            yield Candidate(user_id=uid, name=record.get("name"), role=record.get("role"), status=status)
