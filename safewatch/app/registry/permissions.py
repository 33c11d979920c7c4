"""
permissions.py — Capability predicates over the registry store.

Each predicate is a pure function of (store, identity): no side effects,
no exceptions. The service calls them at the start of an operation and
raises AuthorizationError itself when one returns False.

    Capability          Granted to
    ──────────          ───────────────────────────────────────────
    OWNER               the identity the registry was created with
    REGISTERED          any identity that called register_user
    VERIFIED            registered users the owner has verified
    FIRST_RESPONDER     users the owner flagged (must be verified)
    EMERGENCY_SERVICE   identities the owner added, registered or not
"""

from __future__ import annotations

from enum import Enum
from typing import FrozenSet, Set

from safewatch.app.registry.models import Alert
from safewatch.app.registry.store import RegistryStore


class Capability(str, Enum):
    OWNER             = "owner"
    REGISTERED        = "registered"
    VERIFIED          = "verified"
    FIRST_RESPONDER   = "first_responder"
    EMERGENCY_SERVICE = "emergency_service"


def is_owner(store: RegistryStore, identity: str) -> bool:
    return identity == store.owner


def is_registered(store: RegistryStore, identity: str) -> bool:
    user = store.users.get(identity)
    return user is not None and user.is_registered


def is_verified(store: RegistryStore, identity: str) -> bool:
    user = store.users.get(identity)
    return user is not None and user.is_verified


def is_first_responder(store: RegistryStore, identity: str) -> bool:
    user = store.users.get(identity)
    return user is not None and user.is_first_responder


def is_emergency_service(store: RegistryStore, identity: str) -> bool:
    return identity in store.emergency_services


def has_min_reputation(store: RegistryStore, identity: str, minimum: int) -> bool:
    user = store.users.get(identity)
    return user is not None and user.reputation_score >= minimum


def capabilities(store: RegistryStore, identity: str) -> FrozenSet[Capability]:
    """Every capability the identity currently holds."""
    caps: Set[Capability] = set()
    if is_owner(store, identity):
        caps.add(Capability.OWNER)
    if is_registered(store, identity):
        caps.add(Capability.REGISTERED)
    if is_verified(store, identity):
        caps.add(Capability.VERIFIED)
    if is_first_responder(store, identity):
        caps.add(Capability.FIRST_RESPONDER)
    if is_emergency_service(store, identity):
        caps.add(Capability.EMERGENCY_SERVICE)
    return frozenset(caps)


# Any one of these lets a non-reporter close an alert
RESOLVER_CAPABILITIES: FrozenSet[Capability] = frozenset({
    Capability.OWNER,
    Capability.FIRST_RESPONDER,
    Capability.EMERGENCY_SERVICE,
})


def can_resolve(store: RegistryStore, identity: str, alert: Alert) -> bool:
    """Reporter, first responder, emergency service or owner."""
    if identity == alert.reporter:
        return True
    return bool(capabilities(store, identity) & RESOLVER_CAPABILITIES)
