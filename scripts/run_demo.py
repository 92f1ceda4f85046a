from __future__ import annotations

import asyncio
import json
from pathlib import Path
import sys

from rich import print
from rich.prompt import Confirm, Prompt

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from liquidagov.batch import BatchDispatcher
from liquidagov.batch.report import HANDOFF_NOTE, completion_summary, format_batch_report
from liquidagov.core.config import load_settings
from liquidagov.core.logging_config import configure_logging
from liquidagov.core.record import DocumentAttachment
from liquidagov.core.workflow import WorkflowEngine
from liquidagov.gateways import OutboxChannel, StaticExtractionGateway


def load_payload(path: str) -> dict:
    return json.loads(Path(path).read_text(encoding="utf-8"))


async def liquidate(engine: WorkflowEngine, payload: dict) -> None:
    for kind, meta in payload.get("documents", {}).items():
        engine.attach_document(
            kind,
            DocumentAttachment(filename=meta["filename"], mime_type=meta["mime_type"], content=b"demo"),
        )

    await engine.advance()
    print("[bold]Extracted[/bold]", engine.record.as_dict())

    engine.update_record(**payload.get("entry", {}))
    await engine.advance()

    engine.set_attestation(True)
    engine.update_record(**payload.get("liquidation", {}))
    await engine.advance()

    print("[bold green]Liquidação Realizada![/bold green]")
    for label, value in completion_summary(engine.record).items():
        print(f"  {label}: {value}")
    print(f"[italic]{HANDOFF_NOTE}[/italic]")


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level, "console")

    input_path = sys.argv[1] if len(sys.argv) > 1 else "data/sample_liquidation.json"
    payload = load_payload(input_path)

    engine = WorkflowEngine(
        settings,
        extraction=StaticExtractionGateway(payload.get("extraction", {})),
    )
    asyncio.run(liquidate(engine, payload))

    engine.view_batch()
    print("\n[bold]Remessa[/bold]")
    print(format_batch_report(engine.ledger))

    channel = OutboxChannel()
    dispatcher = BatchDispatcher(channel, settings.default_destination)
    outcome = dispatcher.dispatch(
        engine.ledger,
        address_prompt=lambda default: Prompt.ask("E-mail de destino", default=default) or None,
        confirm=lambda message: Confirm.ask("O e-mail foi enviado?"),
    )
    print("[bold]Dispatch[/bold]", outcome.status, f"({engine.ledger.size()} pending)")

    print("\n[bold]Logs[/bold]")
    for entry in engine.audit_log:
        print(f"- {entry['stage']} :: {entry['action']} :: {entry['detail']}")


if __name__ == "__main__":
    main()
