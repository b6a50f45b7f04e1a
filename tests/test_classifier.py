from __future__ import annotations

import pytest

from omie_sync.core.backoff import backoff_delay
from omie_sync.core.classifier import (
    DUPLICATE_KEY_NOTE,
    DUPLICATE_RECORD_NOTE,
    Verdict,
    classify,
)


def test_backoff_doubles_from_base():
    assert [backoff_delay(attempt) for attempt in range(1, 5)] == [1.0, 2.0, 4.0, 8.0]
    assert backoff_delay(3, base=0.5) == 2.0


def test_backoff_is_monotonic():
    delays = [backoff_delay(attempt, base=1.5) for attempt in range(1, 10)]
    assert delays == sorted(delays)


def test_backoff_rejects_attempt_zero():
    with pytest.raises(ValueError):
        backoff_delay(0)


@pytest.mark.parametrize("status_code", [200, 500, None])
def test_duplicate_integration_key_is_already_applied(status_code):
    payload = {
        "faultcode": "SOAP-ENV:Client-102",
        "faultstring": "ERROR: Lançamento já cadastrado para o Código de Integração [CR_1001_1700000000000] !",
    }

    result = classify(payload, status_code)

    assert result.verdict is Verdict.ALREADY_APPLIED
    assert result.note == DUPLICATE_KEY_NOTE


def test_generic_already_exists_phrase():
    payload = {"faultcode": "SOAP-ENV:Client-500", "faultstring": "Cliente já existe no cadastro"}

    result = classify(payload, 500)

    assert result.verdict is Verdict.ALREADY_APPLIED
    assert result.note == DUPLICATE_RECORD_NOTE


@pytest.mark.parametrize("code", [90001300, "90001300"])
def test_duplicate_error_code(code):
    result = classify({"faultstring": "Erro", "codigo_erro": code}, 500)
    assert result.verdict is Verdict.ALREADY_APPLIED


def test_cooldown_reads_embedded_seconds():
    payload = {
        "faultcode": "MISUSE_API_PROCESS",
        "faultstring": "API bloqueada por consumo indevido. Tente novamente em 45 segundos.",
    }

    result = classify(payload, 425)

    assert result.verdict is Verdict.BLOCKING_COOLDOWN
    assert result.cooldown_seconds == 45


def test_cooldown_defaults_to_sixty_seconds():
    payload = {"faultcode": "MISUSE_API_PROCESS", "faultstring": "API bloqueada por consumo indevido."}

    result = classify(payload, 425)

    assert result.verdict is Verdict.BLOCKING_COOLDOWN
    assert result.cooldown_seconds == 60


def test_cooldown_requires_both_code_and_message():
    payload = {"faultcode": "MISUSE_API_PROCESS", "faultstring": "Consumo redundante detectado"}
    assert classify(payload, 500).verdict is Verdict.TRANSIENT


@pytest.mark.parametrize(
    "payload",
    [
        {"faultcode": "SOAP-ENV:Server", "faultstring": "Erro interno"},
        {"codigo_erro": 5001},
        "<html>Bad gateway</html>",
        None,
    ],
)
def test_everything_else_is_transient(payload):
    assert classify(payload, 502).verdict is Verdict.TRANSIENT
