from __future__ import annotations

import csv
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import pytest
from openpyxl import Workbook
from sqlalchemy import create_engine, text

from omie_sync.core import resolution
from omie_sync.core.dates import coerce_date, format_date, shift_date
from omie_sync.core.errors import ConfigurationError, RecordFetchError
from omie_sync.core.schema import SourceRecord
from omie_sync.infrastructure import FileRecordSource, SqlViewRecordSource

HEADER = ["contrato_id", "data_status", "Vlr_Bruto", "valor_base_a_vista", "status_banco", "Status_Fim_Prop"]


def test_document_amount_falls_through_empty_candidates():
    row = {"Vlr_Bruto": None, "valor_base_a_vista": 0, "valor_base_producao": "250.50", "valor_documento": 999}
    assert resolution.resolve_decimal(row, resolution.DOCUMENT_AMOUNT_FIELDS) == Decimal("250.50")


def test_commission_amount_defaults_to_zero():
    row = {"vlr_cms_total_repasse": float("nan"), "Vlr_Liquido": ""}
    assert resolution.resolve_decimal(row, resolution.COMMISSION_AMOUNT_FIELDS) == Decimal("0")


def test_status_prefers_matching_candidate():
    row = {"status_cliente": "Em análise", "Status_Fim_Prop": "Pago ao Cliente"}
    assert resolution.resolve_status(row, resolution.CLIENT_STATUS_FIELDS, "Pago ao Cliente") == "Pago ao Cliente"

    row = {"status_cliente": "Em análise", "Status_Fim_Prop": None}
    assert resolution.resolve_status(row, resolution.CLIENT_STATUS_FIELDS, "Pago ao Cliente") == "Em análise"
    assert resolution.resolve_status({}, resolution.CLIENT_STATUS_FIELDS, "Pago ao Cliente") is None


def test_source_record_from_row_resolves_every_field():
    record = SourceRecord.from_row(
        {
            "contrato_id": 42,
            "data_status": None,
            "data_vencimento": datetime(2025, 1, 31, 14, 0),
            "valor_documento": "800",
            "vlr_cms_a_vista_empresa": 55.5,
            "status_banco": " Recebido do Banco ",
            "status_cliente": "Pago ao Cliente",
            "Status_Fim_Prop": "Comissão Paga",
            "codigo_categoria": "1.01.02",
        }
    )

    assert record.contract_id == "42"
    assert record.reference_date == date(2025, 1, 31)
    assert record.document_amount == Decimal("800")
    assert record.commission_amount == Decimal("55.5")
    assert record.bank_status == "Recebido do Banco"
    assert record.client_status == "Pago ao Cliente"
    assert record.commission_status == "Comissão Paga"
    assert record.commission_category_code == "1.01.02"


def test_date_helpers():
    assert coerce_date("2025-02-28") == date(2025, 2, 28)
    assert coerce_date(date(2025, 2, 28)) == date(2025, 2, 28)
    assert coerce_date("garbage") is None
    assert coerce_date("") is None
    assert coerce_date(12345) is None
    assert format_date(date(2025, 3, 1)) == "01/03/2025"
    assert shift_date(date(2025, 2, 27), 3, today=date(2030, 1, 1)) == date(2025, 3, 2)
    assert shift_date(None, 3, today=date(2025, 12, 30)) == date(2026, 1, 2)


def test_file_source_reads_csv_exports(tmp_path: Path):
    path = tmp_path / "digitacao.csv"
    with path.open("w", encoding="utf-8", newline="") as fp:
        writer = csv.writer(fp)
        writer.writerow(HEADER)
        writer.writerow(["0077", "2025-03-10", "", "640.10", "Pendente", ""])

    rows = FileRecordSource(path).fetch_records()

    assert rows == [
        {
            "contrato_id": "0077",
            "data_status": "2025-03-10",
            "Vlr_Bruto": None,
            "valor_base_a_vista": "640.10",
            "status_banco": "Pendente",
            "Status_Fim_Prop": None,
        }
    ]
    assert SourceRecord.from_row(rows[0]).document_amount == Decimal("640.10")


def test_file_source_reads_excel_exports(tmp_path: Path):
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Digitacao"
    sheet.append(HEADER)
    sheet.append([1234, "2025-03-10", 1500, None, "Recebido do Banco", "Pago ao Cliente"])
    path = tmp_path / "digitacao.xlsx"
    workbook.save(path)

    rows = FileRecordSource(path, sheet_name="Digitacao").fetch_records()

    assert len(rows) == 1
    record = SourceRecord.from_row(rows[0])
    assert record.contract_id == "1234"
    assert record.document_amount == Decimal("1500")
    assert record.client_status == "Pago ao Cliente"


def test_file_source_rejects_unknown_formats(tmp_path: Path):
    path = tmp_path / "digitacao.txt"
    path.write_text("contrato_id\n1\n", encoding="utf-8")
    with pytest.raises(RecordFetchError):
        FileRecordSource(path).fetch_records()


def test_file_source_missing_file_is_a_fetch_error(tmp_path: Path):
    with pytest.raises(RecordFetchError):
        FileRecordSource(tmp_path / "missing.csv").fetch_records()


def test_sql_view_source_returns_rows_as_dicts():
    engine = create_engine("sqlite://")
    with engine.begin() as connection:
        connection.execute(text("CREATE TABLE Vw_Digitacao (contrato_id TEXT, Vlr_Bruto REAL, status_banco TEXT)"))
        connection.execute(text("INSERT INTO Vw_Digitacao VALUES ('5001', 99.9, 'Pendente')"))

    source = SqlViewRecordSource(engine)

    assert source.fetch_records() == [{"contrato_id": "5001", "Vlr_Bruto": 99.9, "status_banco": "Pendente"}]
    source.close()


def test_sql_view_source_wraps_database_errors():
    source = SqlViewRecordSource(create_engine("sqlite://"), "Vw_Missing")
    with pytest.raises(RecordFetchError, match="Vw_Missing"):
        source.fetch_records()


def test_sql_view_source_rejects_unsafe_view_names():
    with pytest.raises(ConfigurationError):
        SqlViewRecordSource(create_engine("sqlite://"), "Vw_Digitacao; DROP TABLE x")


def test_file_source_corrupt_workbook_is_a_fetch_error(tmp_path: Path):
    path = tmp_path / "export.xlsx"
    path.write_bytes(b"not a zip file")

    with pytest.raises(RecordFetchError, match="export.xlsx"):
        FileRecordSource(path).fetch_records()


def test_unreadable_amount_is_skipped_with_a_warning(caplog):
    row = {"Vlr_Bruto": "1.500,00", "valor_base_a_vista": "320.00"}

    with caplog.at_level("WARNING", logger="omie_sync.core.resolution"):
        amount = resolution.resolve_decimal(row, resolution.DOCUMENT_AMOUNT_FIELDS)

    assert amount == Decimal("320.00")
    assert "Vlr_Bruto" in caplog.text
    assert "1.500,00" in caplog.text
