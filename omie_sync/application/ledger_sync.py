"""Per-record ledger synchronisation.

Every record drives two independent tracks:

* receivable (``CR``): ``IncluirContaReceber`` then ``LancarRecebimento``;
* payable / commission (``CP``): ``IncluirContaPagar`` then ``LancarPagamento``.

A track moves ``NOT_STARTED -> CREATED -> SETTLED``. When its entry guard fails
it becomes ``EXCLUDED`` without any call. The settle call is only issued after
a logically successful create (a real success or a duplicate Omie already
holds), so a settlement is never posted against an entry that may not exist.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Awaitable, Callable, Protocol

from omie_sync.core.config import Settings
from omie_sync.core.dates import format_date, shift_date
from omie_sync.core.schema import (
    BANK_STATUS_CANCELLED,
    BANK_STATUS_RECEIVED,
    CLIENT_STATUS_PAID,
    COMMISSION_STATUS_PAID,
    SourceRecord,
)
from omie_sync.domain import (
    PAYABLE_PREFIX,
    RECEIVABLE_PREFIX,
    CallOutcome,
    CallTask,
    IntegrationKeyFactory,
    RecordReport,
    RunCounters,
    TrackReport,
    TrackState,
    build_integration_key,
)

logger = logging.getLogger(__name__)

RECEIVABLE = "receivable"
PAYABLE = "payable"

PayloadBuilder = Callable[[str, list[dict[str, Any]]], dict[str, Any]]


class TaskSubmitter(Protocol):
    def submit(self, task: CallTask) -> Awaitable[CallOutcome]: ...


@dataclass(frozen=True, slots=True)
class TrackPlan:
    track: str
    key: str
    eligible: bool
    settle_ready: bool
    create: CallTask
    settle: CallTask
    excluded_reason: str
    unsettled_reason: str


def _amount(value: Decimal) -> float:
    return float(value)


class LedgerSyncMachine:
    def __init__(
        self,
        dispatcher: TaskSubmitter,
        build_payload: PayloadBuilder,
        settings: Settings,
        *,
        keys: IntegrationKeyFactory | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._dispatcher = dispatcher
        self._build_payload = build_payload
        self._settings = settings
        self._keys = keys or IntegrationKeyFactory()
        self._today = today

    # ------------------------------------------------------------------
    # plans
    # ------------------------------------------------------------------
    def _receivable_plan(self, record: SourceRecord, key: str, due: str, settled_on: str) -> TrackPlan:
        settings = self._settings
        contract = record.contract_id
        create = CallTask(
            url=settings.receivable_url,
            payload=self._build_payload(
                "IncluirContaReceber",
                [
                    {
                        "codigo_lancamento_integracao": key,
                        "codigo_cliente_fornecedor": settings.supplier_code,
                        "codigo_cliente_fornecedor_integracao": settings.supplier_code,
                        "data_vencimento": due,
                        "valor_documento": _amount(record.document_amount),
                        "numero_documento": contract,
                        "codigo_categoria": record.category_code,
                        "data_previsao": due,
                        "id_conta_corrente": settings.account_code,
                    }
                ],
            ),
            label=f"Inclusão CR p/ Contrato {key}",
            integration_key=key,
        )
        settle = CallTask(
            url=settings.receivable_url,
            payload=self._build_payload(
                "LancarRecebimento",
                [
                    {
                        "codigo_lancamento_integracao": key,
                        "codigo_lancamento": 0,
                        "codigo_baixa": 0,
                        "codigo_conta_corrente": settings.account_code,
                        "valor": _amount(record.document_amount),
                        "data": settled_on,
                        "observacao": f"Recebimento Contrato ID {contract} (API via {key})",
                    }
                ],
            ),
            label=f"Baixa CR p/ Contrato {key}",
            integration_key=key,
        )
        return TrackPlan(
            track=RECEIVABLE,
            key=key,
            eligible=record.bank_status != BANK_STATUS_CANCELLED,
            settle_ready=record.bank_status == BANK_STATUS_RECEIVED,
            create=create,
            settle=settle,
            excluded_reason=f'status_banco "{BANK_STATUS_CANCELLED}"',
            unsettled_reason=f'status_banco is not "{BANK_STATUS_RECEIVED}"',
        )

    def _payable_plan(self, record: SourceRecord, key: str, due: str, settled_on: str) -> TrackPlan:
        settings = self._settings
        contract = record.contract_id
        create = CallTask(
            url=settings.payable_url,
            payload=self._build_payload(
                "IncluirContaPagar",
                [
                    {
                        "codigo_lancamento_integracao": key,
                        "codigo_cliente_fornecedor": settings.supplier_code,
                        "codigo_cliente_fornecedor_integracao": settings.supplier_code,
                        "data_vencimento": due,
                        "valor_documento": _amount(record.commission_amount),
                        "numero_documento": f"CMS-{contract}",
                        "codigo_categoria": record.commission_category_code,
                        "data_previsao": due,
                        "id_conta_corrente": settings.account_code,
                    }
                ],
            ),
            label=f"Inclusão CP Comissão p/ Contrato {key}",
            integration_key=key,
        )
        settle = CallTask(
            url=settings.payable_url,
            payload=self._build_payload(
                "LancarPagamento",
                [
                    {
                        "codigo_lancamento_integracao": key,
                        "codigo_lancamento": 0,
                        "codigo_baixa": 0,
                        "codigo_conta_corrente": settings.account_code,
                        "valor": _amount(record.commission_amount),
                        "data": settled_on,
                        "observacao": f"Baixa de comissão Contrato ID {contract} (API via {key}).",
                    }
                ],
            ),
            label=f"Baixa CP Comissão p/ Contrato {key}",
            integration_key=key,
        )
        return TrackPlan(
            track=PAYABLE,
            key=key,
            eligible=record.client_status == CLIENT_STATUS_PAID,
            settle_ready=record.commission_status == COMMISSION_STATUS_PAID,
            create=create,
            settle=settle,
            excluded_reason=f'client not "{CLIENT_STATUS_PAID}"',
            unsettled_reason=f'commission not "{COMMISSION_STATUS_PAID}"',
        )

    # ------------------------------------------------------------------
    # execution
    # ------------------------------------------------------------------
    async def _dispatch(self, task: CallTask, counters: RunCounters) -> CallOutcome:
        outcome = await self._dispatcher.submit(task)
        counters.record(outcome)
        return outcome

    async def _run_track(self, plan: TrackPlan, contract_id: str, counters: RunCounters) -> TrackReport:
        report = TrackReport(track=plan.track, integration_key=plan.key)

        if not plan.eligible:
            report.state = TrackState.EXCLUDED
            logger.info("Contract %s: %s skipped (%s)", contract_id, plan.track, plan.excluded_reason)
            return report

        created = await self._dispatch(plan.create, counters)
        report.outcomes.append(created)
        if not created.success:
            logger.warning("Contract %s: %s create failed for %s; settlement not attempted", contract_id, plan.track, plan.key)
            return report
        report.state = TrackState.CREATED

        if not plan.settle_ready:
            logger.info("Contract %s: %s created for %s but not settled (%s)", contract_id, plan.track, plan.key, plan.unsettled_reason)
            return report

        settled = await self._dispatch(plan.settle, counters)
        report.outcomes.append(settled)
        if settled.success:
            report.state = TrackState.SETTLED
        return report

    async def sync_record(self, record: SourceRecord, counters: RunCounters) -> RecordReport:
        suffix = self._keys.next_suffix()
        receivable_key = build_integration_key(RECEIVABLE_PREFIX, record.contract_id, suffix)
        payable_key = build_integration_key(PAYABLE_PREFIX, record.contract_id, suffix)

        today = self._today()
        due = format_date(shift_date(record.reference_date, self._settings.due_in_days, today=today))
        settled_on = format_date(today)

        logger.info(
            "Processing contract %s: document=%s commission=%s due=%s settlement=%s keys=%s/%s",
            record.contract_id,
            record.document_amount,
            record.commission_amount,
            due,
            settled_on,
            receivable_key,
            payable_key,
        )

        receivable = await self._run_track(
            self._receivable_plan(record, receivable_key, due, settled_on), record.contract_id, counters
        )
        payable = await self._run_track(
            self._payable_plan(record, payable_key, due, settled_on), record.contract_id, counters
        )
        return RecordReport(contract_id=record.contract_id, receivable=receivable, payable=payable)


__all__ = ["LedgerSyncMachine", "PAYABLE", "RECEIVABLE", "TaskSubmitter", "TrackPlan"]
