from __future__ import annotations


class CollaboratorError(RuntimeError):
    """A remote collaborator failed or returned an unusable payload."""


class ExtractionError(CollaboratorError):
    pass


class ExplanationError(CollaboratorError):
    pass


class InvalidDocumentError(ValueError):
    pass


class ContractNotFoundError(KeyError):
    def __init__(self, contract_id: str) -> None:
        super().__init__(contract_id)
        self.contract_id = contract_id

    def __str__(self) -> str:
        return f"Contract not found: {self.contract_id}"


__all__ = [
    "CollaboratorError",
    "ContractNotFoundError",
    "ExplanationError",
    "ExtractionError",
    "InvalidDocumentError",
]
