from pathlib import Path

import pytest
from pydantic import ValidationError

from tacsynth.config import Settings
from tacsynth.ledger.ledger import Ledger
from tacsynth.orchestrator.session import LEDGER_FILE, REPORT_FILE, synthesize, synthesize_file
from tacsynth.schemas import HoleRequest, SynthesisReport, load_request
from tacsynth.utils import read_json

HOLES = Path(__file__).resolve().parents[1] / "examples" / "holes"


def test_request_builds_judgment_and_context() -> None:
    request = load_request(HOLES / "list_length.json")
    judgment = request.to_judgment()
    context = request.to_context()
    assert judgment.is_top_hole
    assert judgment.local_hypothesis().keys() == {"xs"}
    assert set(judgment.ambient_hypothesis) == {"zero", "succ"}
    assert judgment.position_maps == {"length": (("xs",),)}
    assert context.defining_names() == ["length"]
    assert "List" in context.data_decls


def test_request_rejects_unknown_params() -> None:
    with pytest.raises(ValidationError):
        HoleRequest(
            hypothesis={},
            goal="Int",
            defining=[{"name": "f", "type": "Int", "params": ["missing"]}],
        )


def test_request_hash_is_stable() -> None:
    first = load_request(HOLES / "use_bool.json")
    second = load_request(HOLES / "use_bool.json")
    assert first.stable_hash() == second.stable_hash()
    changed = HoleRequest(**{**first.model_dump(), "goal": "Int", "hash_inputs": []})
    assert changed.stable_hash() != first.stable_hash()


def test_custom_data_decls_replace_standard() -> None:
    request = HoleRequest(
        hypothesis={"c": "Color"},
        goal="Color",
        data_decls=[
            {"name": "Color", "constructors": [{"name": "Red"}, {"name": "Blue"}]},
        ],
        tactic="destruct c",
    )
    report = synthesize(request, Settings())
    assert report.status == "SOLVED"
    assert [alt["con"] for alt in report.extract["alts"]] == ["Red", "Blue"]
    assert report.holes == 2


def test_synthesize_writes_report_and_ledger(tmp_path: Path) -> None:
    run_dir = tmp_path / "run"
    report = synthesize_file(HOLES / "use_bool.json", Settings(), run_dir=run_dir)
    assert report.status == "SOLVED"
    assert report.extract == {"kind": "var", "name": "y"}
    assert report.trace_text == "assumption y\n"
    stored = read_json(run_dir / REPORT_FILE)
    assert SynthesisReport(**stored).stable_hash() == report.stable_hash()
    types = [event["type"] for event in Ledger(run_dir / LEDGER_FILE).events()]
    assert types == ["RUN_START", "SEARCH_START", "SEARCH_END", "RUN_END"]
    ok, _ = Ledger.verify_chain(run_dir / LEDGER_FILE)
    assert ok


def test_synthesize_reports_errors() -> None:
    report = synthesize_file(HOLES / "no_solution.json", Settings())
    assert report.status == "NO_SOLUTION"
    assert report.extract is None
    assert report.errors
    assert {"failure_atom", "message"} <= set(report.errors[0])


def test_script_override_and_repeatability() -> None:
    settings = Settings(node_budget=2000)
    first = synthesize_file(HOLES / "list_length.json", settings)
    second = synthesize_file(HOLES / "list_length.json", settings)
    assert first.status == "SOLVED"
    assert first.stable_hash() == second.stable_hash()
    assert first.extract["kind"] == "case"
    overridden = synthesize_file(HOLES / "list_length.json", settings, script="intros")
    assert overridden.status == "NO_SOLUTION"
    assert overridden.tactic == "intros"


@pytest.mark.slow
def test_pair_swap_with_default_depth() -> None:
    report = synthesize_file(HOLES / "pair_swap.json", Settings(), script="auto")
    assert report.status == "SOLVED"
    assert report.extract["kind"] == "case"


def test_disabled_split_is_gated_by_settings() -> None:
    request = HoleRequest(hypothesis={}, goal="Bool", tactic="split")
    assert request.to_judgment().whitelist_split is False
    assert synthesize(request, Settings()).status == "SOLVED"
    report = synthesize(request, Settings(split_enabled=False))
    assert report.status == "NO_SOLUTION"
    assert {error["failure_atom"] for error in report.errors} == {"NO_APPLICABLE_TACTIC"}
