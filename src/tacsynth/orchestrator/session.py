from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from ..config import Settings
from ..engine.runner import RunTacticResults, SearchOutcome, run_tactic
from ..ledger.ledger import Ledger
from ..schemas import HoleRequest, SynthesisReport, load_request
from ..tactics.auto import build_tactic
from ..utils import ensure_dir, write_json

REPORT_FILE = "report.json"
LEDGER_FILE = "ledger.jsonl"


def build_report(
    request: HoleRequest, settings: Settings, script: str, outcome: SearchOutcome
) -> SynthesisReport:
    common: Dict[str, Any] = {
        "request_hash": request.stable_hash(),
        "settings_hash": settings.settings_hash(),
        "tactic": script,
        "cutoff": outcome.cutoff,
        "explored": outcome.explored,
        "policy_version": settings.policy_version,
    }
    if isinstance(outcome, RunTacticResults):
        return SynthesisReport(
            status="SOLVED",
            extract=outcome.extract,
            trace=outcome.trace.to_json(),
            trace_text=outcome.trace.render(),
            other_solutions=[
                {"trace": trace.to_json(), "extract": extract}
                for trace, extract in outcome.other_solutions
            ],
            holes=outcome.holes,
            final_state=outcome.state.to_json(),
            **common,
        )
    return SynthesisReport(
        status="NO_SOLUTION",
        errors=[error.to_record() for error in outcome.errors],
        **common,
    )


def synthesize(
    request: HoleRequest,
    settings: Settings,
    run_dir: Optional[Path] = None,
    script: Optional[str] = None,
) -> SynthesisReport:
    """Run one hole request end to end, recording events when ``run_dir`` is given."""
    script = script or request.tactic
    tactic = build_tactic(script, settings)
    judgment = request.to_judgment(
        blacklist_destruct=not settings.destruct_enabled,
        whitelist_split=False,
    )
    context = request.to_context()
    ledger: Optional[Ledger] = None
    if run_dir is not None:
        ensure_dir(run_dir)
        ledger = Ledger(run_dir / LEDGER_FILE)
        ledger.append("RUN_START", {"run_dir": str(run_dir), "request_hash": request.stable_hash()})
    outcome = run_tactic(tactic, judgment, context, settings=settings, ledger=ledger)
    report = build_report(request, settings, script, outcome)
    if run_dir is not None and ledger is not None:
        write_json(run_dir / REPORT_FILE, report.model_dump())
        ledger.append(
            "RUN_END",
            {"status": report.status, "report_hash": report.stable_hash()},
        )
    return report


def synthesize_file(
    request_file: Path,
    settings: Settings,
    run_dir: Optional[Path] = None,
    script: Optional[str] = None,
) -> SynthesisReport:
    return synthesize(load_request(request_file), settings, run_dir=run_dir, script=script)
