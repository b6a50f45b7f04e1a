"""Ordered fallbacks for the columns of the ``Vw_Digitacao`` view.

Several business values are spread over more than one column depending on the
product that originated the contract. Each logical field is declared once here
as an ordered tuple of candidate columns; the first *populated* candidate wins.
A cell counts as populated when it is not ``None``, not blank, not zero and not
NaN, matching how the operational system itself treats empty values.
"""
from __future__ import annotations

import logging
import math
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Sequence

logger = logging.getLogger(__name__)

DOCUMENT_AMOUNT_FIELDS: tuple[str, ...] = (
    "Vlr_Bruto",
    "valor_base_a_vista",
    "valor_base_producao",
    "valor_documento",
)
COMMISSION_AMOUNT_FIELDS: tuple[str, ...] = (
    "vlr_cms_total_repasse",
    "vlr_cms_a_vista_repasse",
    "vlr_cms_total_empresa",
    "vlr_cms_a_vista_empresa",
    "Vlr_Liquido",
    "valor_comissao",
)
REFERENCE_DATE_FIELDS: tuple[str, ...] = ("data_status", "data_vencimento")
CLIENT_STATUS_FIELDS: tuple[str, ...] = ("status_cliente", "Status_Fim_Prop")
COMMISSION_STATUS_FIELDS: tuple[str, ...] = ("status_comissao", "Status_Fim_Prop")
CATEGORY_FIELDS: tuple[str, ...] = ("codigo_categoria",)
COMMISSION_CATEGORY_FIELDS: tuple[str, ...] = ("codigo_categoria_comissao", "codigo_categoria")


def is_populated(value: Any) -> bool:
    if value is None or isinstance(value, bool) and not value:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, float):
        return not math.isnan(value) and value != 0
    if isinstance(value, Decimal):
        return value.is_finite() and value != 0
    if isinstance(value, int):
        return value != 0
    return True


def resolve_first(row: Mapping[str, Any], fields: Sequence[str], default: Any = None) -> Any:
    for field in fields:
        value = row.get(field)
        if is_populated(value):
            return value
    return default


def resolve_decimal(row: Mapping[str, Any], fields: Sequence[str]) -> Decimal:
    """First populated candidate that parses as a finite number, else ``0``."""

    for field in fields:
        value = row.get(field)
        if not is_populated(value):
            continue
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            logger.warning("Column %s holds an unreadable amount %r; trying the next candidate", field, value)
            continue
        if not amount.is_finite():
            logger.warning("Column %s holds a non-finite amount %r; trying the next candidate", field, value)
        elif amount != 0:
            return amount
    return Decimal("0")


def resolve_status(row: Mapping[str, Any], fields: Sequence[str], preferred: str) -> str | None:
    """Return ``preferred`` when any candidate carries it, else the first populated one.

    The candidate columns are equivalent views of one business state, so a
    positive answer in any of them is authoritative.
    """

    values = [str(row.get(field)).strip() for field in fields if is_populated(row.get(field))]
    if preferred in values:
        return preferred
    return values[0] if values else None
