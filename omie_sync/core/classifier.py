"""Interpretation of failed Omie responses.

Omie reports rate-limit blocks and idempotency hits as SOAP-style faults, so a
failed call has to be sorted into one of three buckets before the dispatcher
decides whether to wait, stop, or retry.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

COOLDOWN_FAULT_CODE = "MISUSE_API_PROCESS"
COOLDOWN_MESSAGE = "API bloqueada por consumo indevido"
DEFAULT_COOLDOWN_SECONDS = 60

DUPLICATE_FAULT_CODE = "SOAP-ENV:Client-102"
DUPLICATE_KEY_MESSAGE = "Lançamento já cadastrado para o Código de Integração"
GENERIC_DUPLICATE_MESSAGE = "já existe"
DUPLICATE_ERROR_CODE = 90001300

DUPLICATE_KEY_NOTE = "OK (Lançamento já existe na Omie)"
DUPLICATE_RECORD_NOTE = "OK (Registro existente ou duplicado)"

_DIGITS = re.compile(r"\d+")


class Verdict(str, Enum):
    BLOCKING_COOLDOWN = "blocking_cooldown"
    ALREADY_APPLIED = "already_applied"
    TRANSIENT = "transient"


@dataclass(frozen=True, slots=True)
class Classification:
    verdict: Verdict
    cooldown_seconds: int | None = None
    note: str | None = None


def _is_duplicate_code(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value == DUPLICATE_ERROR_CODE
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip()) == DUPLICATE_ERROR_CODE
    return False


def classify(error_payload: Any, status_code: int | None = None) -> Classification:
    """Classify the body of a failed call.

    ``status_code`` is accepted for diagnostics only: Omie answers duplicates and
    blocks with the same HTTP statuses it uses for genuine errors.
    """

    if not isinstance(error_payload, dict):
        return Classification(Verdict.TRANSIENT)

    faultcode = error_payload.get("faultcode")
    faultstring = error_payload.get("faultstring")
    if not isinstance(faultstring, str):
        faultstring = ""

    if faultcode == COOLDOWN_FAULT_CODE and COOLDOWN_MESSAGE in faultstring:
        match = _DIGITS.search(faultstring)
        seconds = int(match.group(0)) if match else DEFAULT_COOLDOWN_SECONDS
        return Classification(Verdict.BLOCKING_COOLDOWN, cooldown_seconds=seconds)

    if faultcode == DUPLICATE_FAULT_CODE and DUPLICATE_KEY_MESSAGE in faultstring:
        return Classification(Verdict.ALREADY_APPLIED, note=DUPLICATE_KEY_NOTE)

    if GENERIC_DUPLICATE_MESSAGE in faultstring or _is_duplicate_code(error_payload.get("codigo_erro")):
        return Classification(Verdict.ALREADY_APPLIED, note=DUPLICATE_RECORD_NOTE)

    return Classification(Verdict.TRANSIENT)


__all__ = [
    "Classification",
    "DEFAULT_COOLDOWN_SECONDS",
    "DUPLICATE_KEY_NOTE",
    "DUPLICATE_RECORD_NOTE",
    "Verdict",
    "classify",
]
