#!/usr/bin/env python
from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

from omie_sync.application import build_sync_components
from omie_sync.core.config import load_settings
from omie_sync.core.log_config import configure_logging
from omie_sync.infrastructure import FileRecordSource


async def _run(path: Path, sheet: str | None, config: Path | None) -> dict:
    settings = load_settings(config)
    configure_logging(settings.log_level)
    source = FileRecordSource(path, sheet_name=sheet if sheet is not None else 0)
    components = build_sync_components(settings, record_source=source)
    try:
        summary = await components.service.run()
    finally:
        await components.aclose()
    return summary.to_response()


def main() -> None:
    parser = argparse.ArgumentParser(description="Run one Omie synchronisation pass from a CSV/XLSX export")
    parser.add_argument("--input", required=True, help="Export of Vw_Digitacao (.csv or .xlsx)")
    parser.add_argument("--sheet", default=None, help="Worksheet name for Excel exports")
    parser.add_argument("--config", default=None, help="Alternative YAML configuration file")
    args = parser.parse_args()

    summary = asyncio.run(
        _run(Path(args.input), args.sheet, Path(args.config) if args.config else None)
    )
    print(json.dumps(summary, ensure_ascii=False, indent=2, default=str))


if __name__ == "__main__":
    main()
