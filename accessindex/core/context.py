"""Per-network handler context.

A ``HandlerContext`` carries everything a handler needs besides the event:
the network id that prefixes every composite key, the entity model classes,
and the store. One context is built per network deployment and handed to
each handler set explicitly.

``ContextBinding`` is the one-time initialization point for hosts that wire
handlers up before the first event arrives; its accessors raise
``NotInitializedError`` until ``initialize_handlers`` has been called.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict

from accessindex.store.base import ENTITY_TYPES, EntityStore

logger = logging.getLogger(__name__)


class NotInitializedError(RuntimeError):
    """Raised when the context is read before ``initialize_handlers``."""


class HandlerContext(BaseModel):
    """Network identity and store bindings consumed by every handler."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    network_id: str
    entities: Mapping[str, type[BaseModel]]
    store: EntityStore


class ContextBinding:
    """Holds the context for one deployment once it has been initialized."""

    def __init__(self) -> None:
        self._context: HandlerContext | None = None

    def initialize_handlers(
        self,
        network_id: str,
        store: EntityStore,
        entities: Mapping[str, type[BaseModel]] | None = None,
    ) -> HandlerContext:
        """Bind network id, entity types and store. Re-binding replaces the old context."""
        if not network_id:
            raise ValueError("network_id is required")
        if self._context is not None:
            logger.info(
                "Re-initializing handlers: %s -> %s",
                self._context.network_id,
                network_id,
            )
        self._context = HandlerContext(
            network_id=network_id,
            entities=dict(entities) if entities is not None else dict(ENTITY_TYPES),
            store=store,
        )
        logger.debug("Handlers initialized for network %s", network_id)
        return self._context

    @property
    def is_initialized(self) -> bool:
        return self._context is not None

    def get_context(self) -> HandlerContext:
        if self._context is None:
            raise NotInitializedError(
                "Handlers not initialized. Call initialize_handlers() before using handlers."
            )
        return self._context

    def get_network_id(self) -> str:
        return self.get_context().network_id

    def get_entities(self) -> Mapping[str, type[BaseModel]]:
        return self.get_context().entities

    def get_store(self) -> EntityStore:
        return self.get_context().store
