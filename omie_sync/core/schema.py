from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field

from omie_sync.core import resolution
from omie_sync.core.dates import coerce_date

logger = logging.getLogger(__name__)

BANK_STATUS_CANCELLED = "Cancelado"
BANK_STATUS_RECEIVED = "Recebido do Banco"
CLIENT_STATUS_PAID = "Pago ao Cliente"
COMMISSION_STATUS_PAID = "Comissão Paga"


class SourceRecord(BaseModel):
    """One row of the operational view, reduced to the fields the sync needs."""

    model_config = ConfigDict(frozen=True)

    contract_id: str
    reference_date: date | None = None
    document_amount: Decimal = Decimal("0")
    commission_amount: Decimal = Decimal("0")
    bank_status: str | None = None
    client_status: str | None = None
    commission_status: str | None = None
    category_code: str = ""
    commission_category_code: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "SourceRecord":
        contract_id = row.get("contrato_id")
        contract = "" if contract_id is None else str(contract_id).strip()

        raw_date = resolution.resolve_first(row, resolution.REFERENCE_DATE_FIELDS)
        reference_date = coerce_date(raw_date)
        if raw_date is not None and reference_date is None:
            logger.warning("Contract %s has an unreadable reference date %r; using today", contract, raw_date)

        bank_status = row.get("status_banco")
        return cls(
            contract_id=contract,
            reference_date=reference_date,
            document_amount=resolution.resolve_decimal(row, resolution.DOCUMENT_AMOUNT_FIELDS),
            commission_amount=resolution.resolve_decimal(row, resolution.COMMISSION_AMOUNT_FIELDS),
            bank_status=str(bank_status).strip() if resolution.is_populated(bank_status) else None,
            client_status=resolution.resolve_status(row, resolution.CLIENT_STATUS_FIELDS, CLIENT_STATUS_PAID),
            commission_status=resolution.resolve_status(
                row, resolution.COMMISSION_STATUS_FIELDS, COMMISSION_STATUS_PAID
            ),
            category_code=str(resolution.resolve_first(row, resolution.CATEGORY_FIELDS, "")),
            commission_category_code=str(
                resolution.resolve_first(row, resolution.COMMISSION_CATEGORY_FIELDS, "")
            ),
        )


class SyncRunSummary(BaseModel):
    """JSON document returned by the trigger endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["concluido", "erro_critico"]
    total_found: int = Field(0, alias="totalRegistrosEncontrados")
    processed: int = Field(0, alias="registrosProcessados")
    successful: int = Field(0, alias="successfulOmieOperations")
    failed: int = Field(0, alias="failedOmieOperations")
    results: list[dict[str, Any]] = Field(default_factory=list)
    error: str | None = None

    def to_response(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
