from pathlib import Path

from typer.testing import CliRunner

from tacsynth.cli import app
from tacsynth.utils import read_json

ROOT = Path(__file__).resolve().parents[1]
HOLES = ROOT / "examples" / "holes"


def test_synth_run_writes_report(tmp_path: Path) -> None:
    runner = CliRunner()
    run_dir = tmp_path / "run"
    result = runner.invoke(
        app,
        [
            "synth",
            "run",
            "--request-file",
            str(HOLES / "use_bool.json"),
            "--run-dir",
            str(run_dir),
        ],
    )
    assert result.exit_code == 0, result.output
    report = read_json(run_dir / "report.json")
    assert report["status"] == "SOLVED"

    verify = runner.invoke(app, ["ledger", "verify", "--run-dir", str(run_dir)])
    assert verify.exit_code == 0


def test_synth_run_with_config_and_alternatives(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "synth",
            "run",
            "--request-file",
            str(HOLES / "pair_swap.json"),
            "--config",
            str(ROOT / "examples" / "settings_fast.json"),
            "--alternatives",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "alternative" in result.output


def test_synth_run_without_solution_exits_nonzero() -> None:
    runner = CliRunner()
    result = runner.invoke(
        app, ["synth", "run", "--request-file", str(HOLES / "no_solution.json")]
    )
    assert result.exit_code == 1


def test_synth_run_rejects_unknown_tactic() -> None:
    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "synth",
            "run",
            "--request-file",
            str(HOLES / "use_bool.json"),
            "--tactic",
            "conjure",
        ],
    )
    assert result.exit_code == 2


def test_ledger_verify_detects_tampering(tmp_path: Path) -> None:
    runner = CliRunner()
    run_dir = tmp_path / "run"
    runner.invoke(
        app,
        ["synth", "run", "--request-file", str(HOLES / "use_bool.json"), "--run-dir", str(run_dir)],
    )
    ledger_path = run_dir / "ledger.jsonl"
    lines = ledger_path.read_text(encoding="utf-8").splitlines()
    ledger_path.write_text("\n".join(lines[1:]) + "\n", encoding="utf-8")
    result = runner.invoke(app, ["ledger", "verify", "--run-dir", str(run_dir)])
    assert result.exit_code == 1


def test_schema_export_and_tactic_listing(tmp_path: Path) -> None:
    runner = CliRunner()
    out_dir = tmp_path / "schemas"
    result = runner.invoke(app, ["schema", "export", "--out-dir", str(out_dir)])
    assert result.exit_code == 0
    assert (out_dir / "HoleRequest.schema.json").exists()
    assert (out_dir / "SynthesisReport.schema.json").exists()
    listing = runner.invoke(app, ["synth", "tactics"])
    assert listing.exit_code == 0
    assert "recursion" in listing.output
