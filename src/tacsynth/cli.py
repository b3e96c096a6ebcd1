from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import Settings
from .ledger.ledger import Ledger
from .orchestrator.session import synthesize_file
from .schemas import export_schemas
from .tactics.auto import named_tactics
from .utils import canonical_dumps, read_json

app = typer.Typer(help="tacsynth CLI")
console = Console()

REQUEST_FILE_OPTION = typer.Option(..., "--request-file", exists=True)
RUN_DIR_OPTION = typer.Option(None, "--run-dir")
CONFIG_OPTION = typer.Option(None, "--config", exists=True)
TACTIC_OPTION = typer.Option(None, "--tactic", help='Tactic script, e.g. "intros; destruct xs; auto 2".')
RUN_DIR_REQUIRED_OPTION = typer.Option(..., "--run-dir", exists=True)
SCHEMA_OUT_OPTION = typer.Option(Path("schemas"), "--out-dir")
SHOW_ALTERNATIVES_OPTION = typer.Option(False, "--alternatives")

synth_app = typer.Typer(help="Synthesis commands")
ledger_app = typer.Typer(help="Ledger commands")
schema_app = typer.Typer(help="Schema utilities")


@app.callback()
def main() -> None:
    pass


def _load_settings(config: Optional[Path]) -> Settings:
    if config is None:
        return Settings()
    data = read_json(config)
    return Settings(**data)


@synth_app.command("run")
def synth_run_cmd(
    request_file: Path = REQUEST_FILE_OPTION,
    run_dir: Optional[Path] = RUN_DIR_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    tactic: Optional[str] = TACTIC_OPTION,
    alternatives: bool = SHOW_ALTERNATIVES_OPTION,
) -> None:
    settings = _load_settings(config)
    try:
        report = synthesize_file(request_file, settings, run_dir=run_dir, script=tactic)
    except (ValueError, ValidationError) as exc:
        raise typer.BadParameter(str(exc)) from exc

    table = Table(title="Synthesis Summary")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("status", report.status)
    table.add_row("tactic", report.tactic)
    table.add_row("explored", str(report.explored))
    table.add_row("cutoff", str(report.cutoff))
    if report.extract is not None:
        table.add_row("extract", escape(canonical_dumps(report.extract).decode("utf-8")))
        table.add_row("holes", str(report.holes))
        table.add_row("trace", escape(report.trace_text.rstrip("\n")))
    for idx, error in enumerate(report.errors[:10]):
        table.add_row(f"error {idx}", escape(error["message"]))
    console.print(table)
    if alternatives:
        for idx, other in enumerate(report.other_solutions):
            console.print({"alternative": idx, "extract": other["extract"]})
    if report.status != "SOLVED":
        raise typer.Exit(code=1)


@synth_app.command("tactics")
def synth_tactics_cmd() -> None:
    for name in sorted(named_tactics(Settings())):
        console.print(name)


@ledger_app.command("verify")
def ledger_verify_cmd(run_dir: Path = RUN_DIR_REQUIRED_OPTION) -> None:
    ok, message = Ledger.verify_chain(run_dir / "ledger.jsonl")
    console.print({"ok": ok, "message": message})
    if not ok:
        raise typer.Exit(code=1)


@schema_app.command("export")
def schema_export_cmd(out_dir: Path = SCHEMA_OUT_OPTION) -> None:
    export_schemas(str(out_dir))
    console.print({"schemas": str(out_dir)})


app.add_typer(synth_app, name="synth")
app.add_typer(ledger_app, name="ledger")
app.add_typer(schema_app, name="schema")

if __name__ == "__main__":
    app()
