#!/usr/bin/env python
from __future__ import annotations

import argparse
import csv
from pathlib import Path


HEADER = [
    "contrato_id",
    "data_status",
    "Vlr_Bruto",
    "vlr_cms_total_repasse",
    "status_banco",
    "status_cliente",
    "status_comissao",
    "Status_Fim_Prop",
    "codigo_categoria",
    "codigo_categoria_comissao",
]


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a sample Vw_Digitacao CSV export")
    parser.add_argument("--output", required=True, help="Output file path (.csv)")
    parser.add_argument("--date", default="2025-03-10", help="data_status for every row (YYYY-MM-DD)")
    args = parser.parse_args()

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)

    rows = [
        ["1001", args.date, 1500.00, 120.00, "Recebido do Banco", "Pago ao Cliente", "Comissão Paga", "", "1.01.01", "2.01.04"],
        ["1002", args.date, 980.50, 75.40, "Pendente", "Pago ao Cliente", "", "", "1.01.01", ""],
        ["1003", args.date, 2300.00, 210.00, "Cancelado", "", "", "Pago ao Cliente", "1.01.01", "2.01.04"],
    ]

    with output.open("w", newline="", encoding="utf-8") as fp:
        writer = csv.writer(fp)
        writer.writerow(HEADER)
        writer.writerows(rows)

    print(f"Vw_Digitacao sample written to: {output}")


if __name__ == "__main__":
    main()
