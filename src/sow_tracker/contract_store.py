from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterable, Protocol

from .exceptions import ContractNotFoundError
from .models.contract import Contract

logger = logging.getLogger(__name__)

ContractsListener = Callable[[list[Contract]], None]
Unsubscribe = Callable[[], None]


class ContractStore(Protocol):
    def save(self, contract: Contract) -> Contract:
        ...

    def get(self, contract_id: str) -> Contract | None:
        ...

    def delete(self, contract_id: str) -> None:
        ...

    def list_all(self) -> list[Contract]:
        ...

    def subscribe(self, callback: ContractsListener) -> Unsubscribe:
        ...


class InMemoryContractStore:
    def __init__(self, contracts: Iterable[Contract] = ()) -> None:
        self._contracts: Dict[str, Contract] = {contract.id: contract for contract in contracts}
        self._listeners: Dict[int, ContractsListener] = {}
        self._next_token = 0
        self._lock = threading.Lock()

    def save(self, contract: Contract) -> Contract:
        with self._lock:
            self._contracts[contract.id] = contract
        logger.info("Saved contract", extra={"contract_id": contract.id})
        self._notify()
        return contract

    def get(self, contract_id: str) -> Contract | None:
        with self._lock:
            return self._contracts.get(contract_id)

    def delete(self, contract_id: str) -> None:
        with self._lock:
            if contract_id not in self._contracts:
                raise ContractNotFoundError(contract_id)
            del self._contracts[contract_id]
        logger.info("Deleted contract", extra={"contract_id": contract_id})
        self._notify()

    def list_all(self) -> list[Contract]:
        with self._lock:
            return list(self._contracts.values())

    def subscribe(self, callback: ContractsListener) -> Unsubscribe:
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._listeners[token] = callback
            snapshot = list(self._contracts.values())
        callback(snapshot)

        def unsubscribe() -> None:
            with self._lock:
                self._listeners.pop(token, None)

        return unsubscribe

    def _notify(self) -> None:
        with self._lock:
            snapshot = list(self._contracts.values())
            listeners = list(self._listeners.values())
        for listener in listeners:
            listener(snapshot)


__all__ = ["ContractStore", "ContractsListener", "InMemoryContractStore", "Unsubscribe"]
