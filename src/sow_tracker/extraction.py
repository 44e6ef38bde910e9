from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from typing import Any, Protocol

from .dictionaries import MAX_DOCUMENT_SIZE_MB
from .exceptions import CollaboratorError, ExtractionError, InvalidDocumentError
from .models.extraction import ContractDraft

logger = logging.getLogger(__name__)

MAX_DOCUMENT_SIZE_BYTES = MAX_DOCUMENT_SIZE_MB * 1024 * 1024
SUPPORTED_MIME_TYPES = ("application/pdf",)

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


class FieldExtractor(Protocol):
    def extract_contract_fields(self, *, document: bytes, mime_type: str) -> dict[str, Any]:
        ...


@dataclass(frozen=True)
class DecodedDocument:
    mime_type: str
    content: bytes


def decode_data_uri(document_data_uri: str) -> DecodedDocument:
    """Decode ``data:<mime>;base64,<payload>`` into bytes.

    Raises:
        InvalidDocumentError: Malformed URI, unsupported type or oversize payload
    """
    match = _DATA_URI.match(document_data_uri.strip())
    if not match:
        raise InvalidDocumentError("Document must be a base64 data URI: data:<mimetype>;base64,<data>")
    mime_type = match.group("mime").lower()
    if mime_type not in SUPPORTED_MIME_TYPES:
        raise InvalidDocumentError(f"Unsupported document type: {mime_type}")
    try:
        content = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidDocumentError("Document payload is not valid base64") from exc
    if not content:
        raise InvalidDocumentError("Document is empty")
    if len(content) > MAX_DOCUMENT_SIZE_BYTES:
        raise InvalidDocumentError(f"Document exceeds the {MAX_DOCUMENT_SIZE_MB}MB limit")
    return DecodedDocument(mime_type=mime_type, content=content)


class ContractExtractor:
    """Turns an uploaded SOW document into a pre-filled contract draft."""

    def __init__(self, *, extractor: FieldExtractor) -> None:
        self._extractor = extractor

    def extract(self, document_data_uri: str) -> ContractDraft:
        document = decode_data_uri(document_data_uri)
        try:
            fields = self._extractor.extract_contract_fields(
                document=document.content, mime_type=document.mime_type
            )
        except CollaboratorError:
            raise
        except Exception as exc:
            logger.error("SOW extraction failed", exc_info=True)
            raise ExtractionError(f"Failed to extract details from SOW document: {exc}") from exc

        draft = ContractDraft.model_validate(fields)
        logger.info(
            "Extracted SOW details",
            extra={
                "vendor_name": draft.vendor_name,
                "rates": len(draft.billing_rates),
                "document_size": len(document.content),
            },
        )
        return draft


__all__ = ["ContractExtractor", "DecodedDocument", "FieldExtractor", "decode_data_uri"]
