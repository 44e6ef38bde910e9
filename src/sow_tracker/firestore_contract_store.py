from __future__ import annotations

import logging
from typing import Any

from google.cloud import firestore
from pydantic import ValidationError

from .contract_store import ContractsListener, Unsubscribe
from .exceptions import ContractNotFoundError
from .models.contract import Contract

logger = logging.getLogger(__name__)


class FirestoreContractStore:
    """Firestore-backed contract store for production use."""

    COLLECTION_NAME = "sows"

    def __init__(
        self,
        project_id: str | None = None,
        *,
        collection_name: str | None = None,
        client: Any | None = None,
    ) -> None:
        self._db = client if client is not None else firestore.Client(project=project_id)
        self._collection = self._db.collection(collection_name or self.COLLECTION_NAME)

    def save(self, contract: Contract) -> Contract:
        """Create or replace a contract document keyed by its id."""
        self._collection.document(contract.id).set(contract.to_document())
        logger.info(
            "Saved contract",
            extra={"contract_id": contract.id, "vendor_name": contract.vendor_name},
        )
        return contract

    def get(self, contract_id: str) -> Contract | None:
        doc = self._collection.document(contract_id).get()
        if not doc.exists:
            return None
        return self._from_firestore_dict(doc.id, doc.to_dict())

    def delete(self, contract_id: str) -> None:
        doc_ref = self._collection.document(contract_id)
        if not doc_ref.get().exists:
            raise ContractNotFoundError(contract_id)
        doc_ref.delete()
        logger.info("Deleted contract", extra={"contract_id": contract_id})

    def list_all(self) -> list[Contract]:
        return self._parse_documents(self._collection.stream())

    def subscribe(self, callback: ContractsListener) -> Unsubscribe:
        """Invoke ``callback`` with the full contract list on every change."""

        def on_snapshot(docs, changes, read_time) -> None:
            callback(self._parse_documents(docs))

        watch = self._collection.on_snapshot(on_snapshot)
        return watch.unsubscribe

    def _parse_documents(self, docs) -> list[Contract]:
        contracts: list[Contract] = []
        for doc in docs:
            try:
                contracts.append(self._from_firestore_dict(doc.id, doc.to_dict()))
            except ValidationError:
                # No schema enforcement on the collection; skip malformed rows.
                logger.warning(
                    "Skipping malformed contract document",
                    exc_info=True,
                    extra={"contract_id": doc.id},
                )
        return contracts

    def _from_firestore_dict(self, contract_id: str, data: dict) -> Contract:
        return Contract.model_validate({**data, "id": contract_id})


__all__ = ["FirestoreContractStore"]
