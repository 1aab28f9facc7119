"""Pydantic models for the pdfnotary API."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

_HEX_ID = r"^0x[0-9a-f]{64}$"


class NotarizationEnvelope(BaseModel):
    title: str
    summary: str
    doc_type: str
    date_iso: str
    parties: List[str]
    tags: List[str]
    model: str
    model_hash: str
    prompt_hash: str
    agent_version: str
    extract_confidence: str
    pdf_text_sha256: str
    pages_processed: str
    content_identifier: str = Field(..., pattern=_HEX_ID, description="Keccak-256 of the uploaded bytes")
    metadata_identifier: str = Field(..., pattern=_HEX_ID, description="Keccak-256 of the canonical metadata")


class AbortResponse(BaseModel):
    detail: str
    reason: str = Field(..., description="Pipeline abort reason, e.g. NoExtractableText")


class VerificationResponse(BaseModel):
    kind: Literal["content", "metadata"]
    identifier: str = Field(..., pattern=_HEX_ID)
    status: Literal["found", "not_found", "lookup_not_performed"]
    found: bool
    record_id: Optional[str] = Field(default=None, description="Registry record id when found")
    detail: Optional[str] = Field(default=None, description="Why the lookup was not performed")


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
    agent_version: str
    use_model_generator: bool
    registry_enabled: bool
