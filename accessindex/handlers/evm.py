"""OpenZeppelin AccessControl / Ownable / DefaultAdminRules handlers for EVM logs.

Nine independent transition functions. Each one validates the log's topic
layout, decodes indexed params from the topics and non-indexed params from
``data``, then applies its state delta and appends one
``AccessControlEvent`` inside a single store transaction.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from accessindex.core.identifiers import (
    generate_contract_ownership_id,
    generate_event_id,
    generate_role_membership_id,
)
from accessindex.core.normalizer import is_zero_address, normalize_evm_address
from accessindex.core.validation import (
    EventContext,
    is_valid_block_number,
    is_valid_event,
    is_valid_unix_timestamp,
    validate_evm_event,
)
from accessindex.decoding.evm import (
    decode_address_topic,
    decode_data_words,
    decode_role_topic,
)
from accessindex.decoding.result import Decoded
from accessindex.handlers.base import BaseHandlerSet
from accessindex.models.chain import EvmLog
from accessindex.models.entities import (
    AccessControlEvent,
    ContractOwnership,
    EventType,
    RoleMembership,
)
from accessindex.store.base import update_existing, upsert


class EvmHandlerSet(BaseHandlerSet):
    """Handlers for one EVM network.

    Parameters
    ----------
    context:
        Network id and store; see ``accessindex.core.context``.

    Every ``handle_*`` method takes an ``EvmLog`` and returns the appended
    event, or ``None`` when the log was malformed and skipped.
    """

    ecosystem = "evm"

    # ------------------------------------------------------------------
    # Shared decoding
    # ------------------------------------------------------------------

    def _accept(self, log: EvmLog, event_name: str) -> bool:
        result = validate_evm_event(
            log.topics,
            event_name,
            self.network_id,
            log.block_number,
            log.transaction_hash,
        )
        if not is_valid_event(result):
            return False
        if not is_valid_block_number(log.block_number):
            self._skip(self._where(log, event_name), "block number out of range")
            return False
        if not is_valid_unix_timestamp(log.block.timestamp):
            self._skip(
                self._where(log, event_name),
                f"block timestamp {log.block.timestamp} out of range",
            )
            return False
        return True

    def _where(self, log: EvmLog, event_name: str) -> EventContext:
        return EventContext(
            network=self.network_id,
            block_number=log.block_number,
            event_type=event_name,
            transaction_hash=log.transaction_hash,
        )

    def _unpack(self, log: EvmLog, event_name: str, *decoded: Decoded[Any]) -> list[Any] | None:
        for item in decoded:
            if not item.ok:
                self._skip(self._where(log, event_name), str(item.error))
                return None
        return [item.value for item in decoded]

    def _event(self, log: EvmLog, event_type: EventType, **fields: Any) -> AccessControlEvent:
        tx_hash = log.transaction_hash.lower()
        return AccessControlEvent(
            id=generate_event_id(tx_hash, log.log_index),
            network=self.network_id,
            # The framework-supplied address is trusted; a bad one is a bug upstream.
            contract=normalize_evm_address(log.address),
            event_type=event_type,
            block_number=log.block_number,
            timestamp=datetime.fromtimestamp(log.block.timestamp, timezone.utc),
            tx_hash=tx_hash,
            **fields,
        )

    # ------------------------------------------------------------------
    # AccessControl
    # ------------------------------------------------------------------

    def handle_role_granted(self, log: EvmLog) -> AccessControlEvent | None:
        """RoleGranted(bytes32 indexed role, address indexed account, address indexed sender)"""
        if not self._accept(log, "RoleGranted"):
            return None
        values = self._unpack(
            log,
            "RoleGranted",
            decode_role_topic(log.topics, 1),
            decode_address_topic(log.topics, 2),
            decode_address_topic(log.topics, 3),
        )
        if values is None:
            return None
        role, account, sender = values

        event = self._event(
            log, EventType.ROLE_GRANTED, role=role, account=account, sender=sender
        )
        membership_id = generate_role_membership_id(
            self.network_id, event.contract, role, account
        )
        store = self.context.store
        with store.transaction():
            # A re-grant overwrites the existing membership.
            store.memberships.put(
                membership_id,
                RoleMembership(
                    id=membership_id,
                    network=self.network_id,
                    contract=event.contract,
                    role=role,
                    account=account,
                    granted_at=event.timestamp,
                    granted_by=sender,
                    tx_hash=event.tx_hash,
                ),
            )
            self._classify(event.contract, event)
            return self._append_event(event)

    def handle_role_revoked(self, log: EvmLog) -> AccessControlEvent | None:
        """RoleRevoked(bytes32 indexed role, address indexed account, address indexed sender)"""
        if not self._accept(log, "RoleRevoked"):
            return None
        values = self._unpack(
            log,
            "RoleRevoked",
            decode_role_topic(log.topics, 1),
            decode_address_topic(log.topics, 2),
            decode_address_topic(log.topics, 3),
        )
        if values is None:
            return None
        role, account, sender = values

        event = self._event(
            log, EventType.ROLE_REVOKED, role=role, account=account, sender=sender
        )
        store = self.context.store
        with store.transaction():
            store.remove(
                "RoleMembership",
                generate_role_membership_id(self.network_id, event.contract, role, account),
            )
            self._classify(event.contract, event)
            return self._append_event(event)

    def handle_role_admin_changed(self, log: EvmLog) -> AccessControlEvent | None:
        """RoleAdminChanged(bytes32 indexed role, bytes32 indexed previousAdminRole, bytes32 indexed newAdminRole)"""
        if not self._accept(log, "RoleAdminChanged"):
            return None
        values = self._unpack(
            log,
            "RoleAdminChanged",
            decode_role_topic(log.topics, 1),
            decode_role_topic(log.topics, 2),
            decode_role_topic(log.topics, 3),
        )
        if values is None:
            return None
        role, previous_admin_role, new_admin_role = values

        event = self._event(
            log,
            EventType.ROLE_ADMIN_CHANGED,
            role=role,
            previous_admin_role=previous_admin_role,
            new_admin_role=new_admin_role,
        )
        with self.context.store.transaction():
            self._classify(event.contract, event)
            return self._append_event(event)

    # ------------------------------------------------------------------
    # Ownable / Ownable2Step
    # ------------------------------------------------------------------

    def handle_ownership_transferred(self, log: EvmLog) -> AccessControlEvent | None:
        """OwnershipTransferred(address indexed previousOwner, address indexed newOwner)

        A transfer to the zero address is a renunciation: the event omits
        ``new_owner`` and the ownership record is deleted.
        """
        if not self._accept(log, "OwnershipTransferred"):
            return None
        values = self._unpack(
            log,
            "OwnershipTransferred",
            decode_address_topic(log.topics, 1),
            decode_address_topic(log.topics, 2),
        )
        if values is None:
            return None
        previous_owner, new_owner = values
        renounced = is_zero_address(new_owner)

        if renounced:
            event = self._event(
                log, EventType.OWNERSHIP_RENOUNCED, previous_owner=previous_owner
            )
        else:
            event = self._event(
                log,
                EventType.OWNERSHIP_TRANSFERRED,
                previous_owner=previous_owner,
                new_owner=new_owner,
            )

        ownership_id = generate_contract_ownership_id(self.network_id, event.contract)
        store = self.context.store
        with store.transaction():
            if renounced:
                store.remove("ContractOwnership", ownership_id)
            else:
                upsert(
                    store.ownerships,
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
                    # A direct transfer supersedes any in-flight two-step transfer.
                    lambda current: current.model_copy(update={
                        "owner": new_owner,
                        "previous_owner": previous_owner,
                        "pending_owner": None,
                        "pending_until_ledger": None,
                        "transferred_at": event.timestamp,
                        "tx_hash": event.tx_hash,
                    }),
                )
            self._classify(event.contract, event)
            return self._append_event(event)

    def handle_ownership_transfer_started(self, log: EvmLog) -> AccessControlEvent | None:
        """OwnershipTransferStarted(address indexed previousOwner, address indexed newOwner)"""
        if not self._accept(log, "OwnershipTransferStarted"):
            return None
        values = self._unpack(
            log,
            "OwnershipTransferStarted",
            decode_address_topic(log.topics, 1),
            decode_address_topic(log.topics, 2),
        )
        if values is None:
            return None
        previous_owner, new_owner = values

        event = self._event(
            log,
            EventType.OWNERSHIP_TRANSFER_STARTED,
            previous_owner=previous_owner,
            new_owner=new_owner,
        )
        ownership_id = generate_contract_ownership_id(self.network_id, event.contract)
        store = self.context.store
        with store.transaction():
            upsert(
                store.ownerships,
                ownership_id,
                lambda: ContractOwnership(
                    id=ownership_id,
                    network=self.network_id,
                    contract=event.contract,
                    owner=previous_owner,
                    pending_owner=new_owner,
                    transferred_at=event.timestamp,
                    tx_hash=event.tx_hash,
                ),
                lambda current: current.model_copy(update={"pending_owner": new_owner}),
            )
            self._classify(event.contract, event)
            return self._append_event(event)

    # ------------------------------------------------------------------
    # AccessControlDefaultAdminRules
    # ------------------------------------------------------------------

    def handle_default_admin_transfer_scheduled(self, log: EvmLog) -> AccessControlEvent | None:
        """DefaultAdminTransferScheduled(address indexed newAdmin, uint48 acceptSchedule)

        Only an existing ownership record picks up the pending admin; no
        record is created here.
        """
        if not self._accept(log, "DefaultAdminTransferScheduled"):
            return None
        values = self._unpack(
            log,
            "DefaultAdminTransferScheduled",
            decode_address_topic(log.topics, 1),
            decode_data_words(log.data, ["uint48"]),
        )
        if values is None:
            return None
        new_admin, (accept_schedule,) = values

        event = self._event(
            log,
            EventType.DEFAULT_ADMIN_TRANSFER_SCHEDULED,
            account=new_admin,
            accept_schedule=accept_schedule,
        )
        store = self.context.store
        with store.transaction():
            update_existing(
                store.ownerships,
                generate_contract_ownership_id(self.network_id, event.contract),
                lambda current: current.model_copy(update={"pending_owner": new_admin}),
            )
            self._classify(event.contract, event)
            return self._append_event(event)

    def handle_default_admin_transfer_canceled(self, log: EvmLog) -> AccessControlEvent | None:
        """DefaultAdminTransferCanceled()"""
        if not self._accept(log, "DefaultAdminTransferCanceled"):
            return None

        event = self._event(log, EventType.DEFAULT_ADMIN_TRANSFER_CANCELED)
        store = self.context.store
        with store.transaction():
            update_existing(
                store.ownerships,
                generate_contract_ownership_id(self.network_id, event.contract),
                lambda current: (
                    current.model_copy(update={"pending_owner": None})
                    if current.pending_owner
                    else None
                ),
            )
            self._classify(event.contract, event)
            return self._append_event(event)

    def handle_default_admin_delay_change_scheduled(self, log: EvmLog) -> AccessControlEvent | None:
        """DefaultAdminDelayChangeScheduled(uint48 newDelay, uint48 effectSchedule)"""
        if not self._accept(log, "DefaultAdminDelayChangeScheduled"):
            return None
        values = self._unpack(
            log,
            "DefaultAdminDelayChangeScheduled",
            decode_data_words(log.data, ["uint48", "uint48"]),
        )
        if values is None:
            return None
        ((new_delay, effect_schedule),) = values

        event = self._event(
            log,
            EventType.DEFAULT_ADMIN_DELAY_CHANGE_SCHEDULED,
            new_delay=new_delay,
            effect_schedule=effect_schedule,
        )
        with self.context.store.transaction():
            self._classify(event.contract, event)
            return self._append_event(event)

    def handle_default_admin_delay_change_canceled(self, log: EvmLog) -> AccessControlEvent | None:
        """DefaultAdminDelayChangeCanceled()"""
        if not self._accept(log, "DefaultAdminDelayChangeCanceled"):
            return None

        event = self._event(log, EventType.DEFAULT_ADMIN_DELAY_CHANGE_CANCELED)
        with self.context.store.transaction():
            self._classify(event.contract, event)
            return self._append_event(event)
