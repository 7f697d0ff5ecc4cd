"""OpenZeppelin Stellar AccessControl / Ownable handlers for Soroban events.

Topics and values arrive as ``SCVal``. Each handler checks the exact topic
count and ledger metadata, converts the values it needs through the
``Decoded`` converters in ``accessindex.decoding.soroban``, and re-validates
every address (StrKey checksum) and role symbol before using it.

Admin transfers are tracked on ``ContractOwnership`` the same way as
two-step ownership transfers, with ``pending_until_ledger`` holding the
ledger after which the pending transfer expires.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from accessindex.core.identifiers import (
    generate_contract_ownership_id,
    generate_event_id,
    generate_role_membership_id,
)
from accessindex.core.validation import (
    get_contract_address,
    has_valid_ledger_info,
    is_valid_ledger_number,
    is_valid_stellar_address,
    is_valid_stellar_role,
    stellar_event_context,
)
from accessindex.decoding.soroban import decode_struct, scval_to_native
from accessindex.handlers.base import BaseHandlerSet, as_utc
from accessindex.models.chain import StellarEvent
from accessindex.models.entities import (
    AccessControlEvent,
    ContractOwnership,
    EventType,
    RoleMembership,
)
from accessindex.store.base import upsert

# Event-id suffix per handler; one event id may carry several semantic events.
SUFFIXES: dict[EventType, str] = {
    EventType.ROLE_GRANTED: "granted",
    EventType.ROLE_REVOKED: "revoked",
    EventType.ROLE_ADMIN_CHANGED: "role-admin-changed",
    EventType.ADMIN_TRANSFER_INITIATED: "admin-init",
    EventType.ADMIN_TRANSFER_COMPLETED: "admin-complete",
    EventType.ADMIN_RENOUNCED: "admin-renounced",
    EventType.OWNERSHIP_TRANSFER_STARTED: "ownership-start",
    EventType.OWNERSHIP_TRANSFER_COMPLETED: "ownership",
    EventType.OWNERSHIP_RENOUNCED: "ownership-renounced",
}


class _Skip(Exception):
    """Internal: abort the current handler with a logged reason."""


class StellarHandlerSet(BaseHandlerSet):
    """Handlers for one Stellar network.

    Parameters
    ----------
    context:
        Network id and store; see ``accessindex.core.context``.

    Every ``handle_*`` method takes a ``StellarEvent`` and returns the
    appended event, or ``None`` when the event was skipped.
    """

    ecosystem = "stellar"

    # ------------------------------------------------------------------
    # Shared decoding
    # ------------------------------------------------------------------

    def _contract(self, event: StellarEvent, topic_count: int) -> str:
        if not has_valid_ledger_info(event):
            raise _Skip("missing or invalid ledger sequence")
        if len(event.topic) != topic_count:
            raise _Skip(f"expected {topic_count} topics, got {len(event.topic)}")
        contract = get_contract_address(event)
        if contract is None:
            raise _Skip(f"invalid contract id {event.contract_id!r}")
        return contract

    @staticmethod
    def _address(raw: Any, label: str) -> str:
        if not is_valid_stellar_address(raw):
            raise _Skip(f"invalid {label} address {raw!r}")
        return raw

    @staticmethod
    def _role(raw: Any, label: str = "role") -> str:
        if not is_valid_stellar_role(raw):
            raise _Skip(f"invalid {label} symbol {raw!r}")
        return raw

    @staticmethod
    def _ledger(raw: Any, label: str) -> int:
        if not is_valid_ledger_number(raw):
            raise _Skip(f"invalid {label} {raw!r}")
        return raw

    @staticmethod
    def _topic(event: StellarEvent, index: int) -> Any:
        decoded = scval_to_native(event.topic[index])
        if not decoded.ok:
            raise _Skip(f"topic[{index}]: {decoded.error}")
        return decoded.value

    @staticmethod
    def _value(event: StellarEvent, *required: str) -> dict[str, Any]:
        decoded = decode_struct(event.value, required)
        if not decoded.ok:
            raise _Skip(f"value: {decoded.error}")
        return decoded.value

    @staticmethod
    def _caller(event: StellarEvent) -> str | None:
        """The optional ``caller`` from a role event value; None if absent or invalid."""
        if event.value is None:
            return None
        decoded = decode_struct(event.value, ("caller",))
        if decoded.ok and is_valid_stellar_address(decoded.value["caller"]):
            return decoded.value["caller"]
        return None

    def _event(
        self, source: StellarEvent, contract: str, event_type: EventType, **fields: Any
    ) -> AccessControlEvent:
        return AccessControlEvent(
            id=generate_event_id(source.id, SUFFIXES[event_type]),
            network=self.network_id,
            contract=contract,
            event_type=event_type,
            block_number=source.ledger.sequence,  # type: ignore[union-attr]
            timestamp=as_utc(source.ledger_closed_at),
            tx_hash=source.transaction.hash.lower() if source.transaction else "",
            **fields,
        )

    def _run(
        self,
        event_name: str,
        source: StellarEvent,
        body: Callable[[], AccessControlEvent],
    ) -> AccessControlEvent | None:
        try:
            return body()
        except _Skip as exc:
            self._skip(
                stellar_event_context(source, self.network_id, event_name),
                f"{exc} (event {source.id})",
            )
            return None

    # ------------------------------------------------------------------
    # AccessControl
    # ------------------------------------------------------------------

    def handle_role_granted(self, source: StellarEvent) -> AccessControlEvent | None:
        """topic: ("role_granted", role, account); value: {caller}?"""

        def body() -> AccessControlEvent:
            contract = self._contract(source, 3)
            role = self._role(self._topic(source, 1))
            account = self._address(self._topic(source, 2), "account")
            sender = self._caller(source)

            event = self._event(
                source, contract, EventType.ROLE_GRANTED,
                role=role, account=account, sender=sender,
            )
            membership_id = generate_role_membership_id(self.network_id, contract, role, account)
            store = self.context.store
            with store.transaction():
                store.memberships.put(
                    membership_id,
                    RoleMembership(
                        id=membership_id,
                        network=self.network_id,
                        contract=contract,
                        role=role,
                        account=account,
                        granted_at=event.timestamp,
                        granted_by=sender,
                        tx_hash=event.tx_hash,
                    ),
                )
                self._classify(contract, event)
                return self._append_event(event)

        return self._run("RoleGranted", source, body)

    def handle_role_revoked(self, source: StellarEvent) -> AccessControlEvent | None:
        """topic: ("role_revoked", role, account); value: {caller}?"""

        def body() -> AccessControlEvent:
            contract = self._contract(source, 3)
            role = self._role(self._topic(source, 1))
            account = self._address(self._topic(source, 2), "account")
            sender = self._caller(source)

            event = self._event(
                source, contract, EventType.ROLE_REVOKED,
                role=role, account=account, sender=sender,
            )
            store = self.context.store
            with store.transaction():
                store.remove(
                    "RoleMembership",
                    generate_role_membership_id(self.network_id, contract, role, account),
                )
                self._classify(contract, event)
                return self._append_event(event)

        return self._run("RoleRevoked", source, body)

    def handle_role_admin_changed(self, source: StellarEvent) -> AccessControlEvent | None:
        """topic: ("role_admin_changed", role); value: {previous_admin_role, new_admin_role}"""

        def body() -> AccessControlEvent:
            contract = self._contract(source, 2)
            role = self._role(self._topic(source, 1))
            data = self._value(source, "previous_admin_role", "new_admin_role")
            previous_admin_role = self._role(data["previous_admin_role"], "previous admin role")
            new_admin_role = self._role(data["new_admin_role"], "new admin role")

            event = self._event(
                source, contract, EventType.ROLE_ADMIN_CHANGED,
                role=role,
                previous_admin_role=previous_admin_role,
                new_admin_role=new_admin_role,
            )
            with self.context.store.transaction():
                self._classify(contract, event)
                return self._append_event(event)

        return self._run("RoleAdminChanged", source, body)

    # ------------------------------------------------------------------
    # Admin transfer (two-step, with expiry)
    # ------------------------------------------------------------------

    def handle_admin_transfer_initiated(self, source: StellarEvent) -> AccessControlEvent | None:
        """topic: ("admin_transfer_initiated", current_admin); value: {new_admin, live_until_ledger}"""

        def body() -> AccessControlEvent:
            contract = self._contract(source, 2)
            current_admin = self._address(self._topic(source, 1), "current admin")
            data = self._value(source, "new_admin", "live_until_ledger")
            new_admin = self._address(data["new_admin"], "new admin")
            live_until = self._ledger(data["live_until_ledger"], "live_until_ledger")

            event = self._event(
                source, contract, EventType.ADMIN_TRANSFER_INITIATED,
                previous_admin=current_admin,
                new_admin=new_admin,
                live_until_ledger=live_until,
            )
            with self.context.store.transaction():
                self._start_pending(event, current_admin, new_admin, live_until)
                self._classify(contract, event)
                return self._append_event(event)

        return self._run("AdminTransferInitiated", source, body)

    def handle_admin_transfer_completed(self, source: StellarEvent) -> AccessControlEvent | None:
        """topic: ("admin_transfer_completed", new_admin); value: {previous_admin}"""

        def body() -> AccessControlEvent:
            contract = self._contract(source, 2)
            new_admin = self._address(self._topic(source, 1), "new admin")
            data = self._value(source, "previous_admin")
            previous_admin = self._address(data["previous_admin"], "previous admin")

            event = self._event(
                source, contract, EventType.ADMIN_TRANSFER_COMPLETED,
                previous_admin=previous_admin,
                new_admin=new_admin,
            )
            with self.context.store.transaction():
                self._complete_pending(event, new_admin, previous_admin)
                self._classify(contract, event)
                return self._append_event(event)

        return self._run("AdminTransferCompleted", source, body)

    def handle_admin_renounced(self, source: StellarEvent) -> AccessControlEvent | None:
        """topic: ("admin_renounced", admin)

        Appended only: the ownership record may describe an Ownable owner
        that is unaffected by renouncing the admin role.
        """

        def body() -> AccessControlEvent:
            contract = self._contract(source, 2)
            admin = self._address(self._topic(source, 1), "admin")

            event = self._event(
                source, contract, EventType.ADMIN_RENOUNCED, previous_admin=admin
            )
            with self.context.store.transaction():
                self._classify(contract, event)
                return self._append_event(event)

        return self._run("AdminRenounced", source, body)

    # ------------------------------------------------------------------
    # Ownable (two-step, with expiry)
    # ------------------------------------------------------------------

    def handle_ownership_transfer_started(self, source: StellarEvent) -> AccessControlEvent | None:
        """topic: ("ownership_transfer",); value: {old_owner, new_owner, live_until_ledger}"""

        def body() -> AccessControlEvent:
            contract = self._contract(source, 1)
            data = self._value(source, "old_owner", "new_owner", "live_until_ledger")
            old_owner = self._address(data["old_owner"], "old owner")
            new_owner = self._address(data["new_owner"], "new owner")
            live_until = self._ledger(data["live_until_ledger"], "live_until_ledger")

            event = self._event(
                source, contract, EventType.OWNERSHIP_TRANSFER_STARTED,
                previous_owner=old_owner,
                new_owner=new_owner,
                live_until_ledger=live_until,
            )
            with self.context.store.transaction():
                self._start_pending(event, old_owner, new_owner, live_until)
                self._classify(contract, event)
                return self._append_event(event)

        return self._run("OwnershipTransferStarted", source, body)

    def handle_ownership_transfer_completed(self, source: StellarEvent) -> AccessControlEvent | None:
        """topic: ("ownership_transfer_completed",); value: {new_owner}

        The event does not carry the old owner, so ``previous_owner`` is read
        from the current ownership record when there is one.
        """

        def body() -> AccessControlEvent:
            contract = self._contract(source, 1)
            data = self._value(source, "new_owner")
            new_owner = self._address(data["new_owner"], "new owner")

            store = self.context.store
            with store.transaction():
                ownership_id = generate_contract_ownership_id(self.network_id, contract)
                existing = store.ownerships.get(ownership_id)
                event = self._event(
                    source, contract, EventType.OWNERSHIP_TRANSFER_COMPLETED,
                    previous_owner=existing.owner if existing else None,
                    new_owner=new_owner,
                )
                self._complete_pending(event, new_owner, None)
                self._classify(contract, event)
                return self._append_event(event)

        return self._run("OwnershipTransferCompleted", source, body)

    def handle_ownership_renounced(self, source: StellarEvent) -> AccessControlEvent | None:
        """topic: ("ownership_renounced",); value: {old_owner}"""

        def body() -> AccessControlEvent:
            contract = self._contract(source, 1)
            data = self._value(source, "old_owner")
            old_owner = self._address(data["old_owner"], "old owner")

            event = self._event(
                source, contract, EventType.OWNERSHIP_RENOUNCED, previous_owner=old_owner
            )
            store = self.context.store
            with store.transaction():
                store.remove(
                    "ContractOwnership",
                    generate_contract_ownership_id(self.network_id, contract),
                )
                self._classify(contract, event)
                return self._append_event(event)

        return self._run("OwnershipRenounced", source, body)

    # ------------------------------------------------------------------
    # Pending-transfer bookkeeping
    # ------------------------------------------------------------------

    def _start_pending(
        self,
        event: AccessControlEvent,
        current: str,
        pending: str,
        live_until_ledger: int,
    ) -> ContractOwnership:
        ownership_id = generate_contract_ownership_id(self.network_id, event.contract)
        return upsert(
            self.context.store.ownerships,
            ownership_id,
            lambda: ContractOwnership(
                id=ownership_id,
                network=self.network_id,
                contract=event.contract,
                owner=current,
                pending_owner=pending,
                pending_until_ledger=live_until_ledger,
                transferred_at=event.timestamp,
                tx_hash=event.tx_hash,
            ),
            lambda existing: existing.model_copy(update={
                "pending_owner": pending,
                "pending_until_ledger": live_until_ledger,
            }),
        )

    def _complete_pending(
        self,
        event: AccessControlEvent,
        new_owner: str,
        previous_owner: str | None,
    ) -> ContractOwnership:
        ownership_id = generate_contract_ownership_id(self.network_id, event.contract)
        return upsert(
            self.context.store.ownerships,
            ownership_id,
            lambda: ContractOwnership(
                id=ownership_id,
                network=self.network_id,
                contract=event.contract,
                owner=new_owner,
                previous_owner=previous_owner,
                transferred_at=event.timestamp,
                tx_hash=event.tx_hash,
            ),
            lambda existing: existing.model_copy(update={
                "previous_owner": existing.owner,
                "owner": new_owner,
                "pending_owner": None,
                "pending_until_ledger": None,
                "transferred_at": event.timestamp,
                "tx_hash": event.tx_hash,
            }),
        )
