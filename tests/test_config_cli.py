import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import patternscan.scanner.matcher as matcher_module
from patternscan.cli.commands import app
from patternscan.cli.core import console, err_console
from patternscan.config.loader import convert_keys, convert_to_camel, load_config, save_config
from patternscan.config.schema import ScannerConfig
from patternscan.walker import TargetWalker, walker_from_config

runner = CliRunner()


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


def test_missing_config_file_gives_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path / "missing.json")
    assert config.concurrency == 4
    assert config.max_matches_per_signature == 10_000
    assert config.max_matched_text_chars == 200
    assert config.fail_on == "critical"
    assert config.catalog_file is None


def test_config_file_uses_camel_case_keys(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "maxMatchesPerSignature": 5,
                "includeExtensions": ["JS", ".ts", " "],
                "failOn": "high",
                "catalogPath": "~/catalog.json",
            }
        )
    )
    config = load_config(path)
    assert config.max_matches_per_signature == 5
    assert config.include_extensions == [".js", ".ts"]
    assert config.fail_on == "high"
    assert config.catalog_file == Path("~/catalog.json").expanduser()


@pytest.mark.parametrize("payload", ["{oops", "[1, 2]", '{"concurrency": 0}', '{"failOn": "sometimes"}'])
def test_bad_config_falls_back_to_defaults(tmp_path: Path, payload: str) -> None:
    path = tmp_path / "config.json"
    path.write_text(payload)
    config = load_config(path)
    assert config.concurrency == 4
    assert config.fail_on == "critical"


def test_save_and_reload_config(tmp_path: Path) -> None:
    path = save_config(ScannerConfig(concurrency=2, fail_on="medium"), tmp_path / "nested" / "config.json")
    raw = json.loads(path.read_text())
    assert raw["concurrency"] == 2
    assert raw["failOn"] == "medium"
    assert "maxFileBytes" in raw
    reloaded = load_config(path)
    assert reloaded.concurrency == 2
    assert reloaded.fail_on == "medium"


def test_environment_overrides_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PATTERNSCAN_CONCURRENCY", "7")
    assert load_config(tmp_path / "missing.json").concurrency == 7


def test_key_conversion() -> None:
    data = {"excludeDirs": ["a"], "nested": [{"maxFileBytes": 1}]}
    assert convert_keys(data) == {"exclude_dirs": ["a"], "nested": [{"max_file_bytes": 1}]}
    assert convert_to_camel(convert_keys(data)) == data


# ---------------------------------------------------------------------------
# Walker
# ---------------------------------------------------------------------------


def test_walker_reads_text_files_and_skips_the_rest(tmp_path: Path) -> None:
    src = tmp_path / "src"
    (src / "node_modules").mkdir(parents=True)
    (src / "a.js").write_text("eval(x)")
    (src / "node_modules" / "lib.js").write_text("eval(y)")
    (src / "blob.js").write_bytes(b"ab\x00cd")
    (src / "big.js").write_text("x" * 50)
    (src / "latin.js").write_bytes(b"\xff\xfe\xfa")
    (src / "notes.md").write_text("eval(z)")

    walker = TargetWalker(include_extensions=[".js"], exclude_dirs=["node_modules"], max_file_bytes=20)
    targets = walker.collect([src], base=tmp_path)

    assert [(t.path, t.content) for t in targets] == [("src/a.js", "eval(x)")]
    assert walker.stats.read == 1
    assert walker.stats.skipped == {"too_large": 1, "binary": 1, "not_utf8": 1}


def test_walker_dedupes_overlapping_roots_and_skips_missing(tmp_path: Path) -> None:
    (tmp_path / "a.js").write_text("1")
    (tmp_path / "b.js").write_text("2")
    walker = walker_from_config(ScannerConfig())
    targets = walker.collect([tmp_path, tmp_path / "a.js", tmp_path / "gone"], base=tmp_path)
    assert [t.path for t in targets] == ["a.js", "b.js"]
    assert walker.stats.skipped == {"missing": 1}


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setattr("patternscan.config.loader.get_config_path", lambda: tmp_path / "config.json")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(console, "width", 200)
    monkeypatch.setattr(err_console, "width", 200)
    src = tmp_path / "src"
    src.mkdir()
    (src / "app.js").write_text("const x = eval(input);\n")
    return tmp_path


def test_scan_fails_on_critical_findings_by_default(workspace: Path) -> None:
    result = runner.invoke(app, ["scan", "src", "--quiet"])
    assert result.exit_code == 1
    assert "[CRITICAL] (1)" in result.output
    assert "src/app.js:1:11  Eval Usage (eval-usage)" in result.output
    assert "Scan completed, 1 finding(s) in 1 file(s)" in result.output


def test_scan_fail_on_none_exits_zero(workspace: Path) -> None:
    result = runner.invoke(app, ["scan", "src", "--fail-on", "none", "--quiet"])
    assert result.exit_code == 0


def test_scan_fail_on_from_config_file(workspace: Path) -> None:
    (workspace / "config.json").write_text(json.dumps({"failOn": "none"}))
    result = runner.invoke(app, ["scan", "src", "--quiet"])
    assert result.exit_code == 0


def test_clean_scan_exits_zero(workspace: Path) -> None:
    (workspace / "src" / "app.js").write_text("const x = 1;\n")
    result = runner.invoke(app, ["scan", "src", "--quiet"])
    assert result.exit_code == 0
    assert "Outcome:              clean" in result.output


def test_scan_writes_json_report(workspace: Path) -> None:
    result = runner.invoke(app, ["scan", "src", "-f", "json", "-o", "out/report.json", "--fail-on", "none", "-q"])
    assert result.exit_code == 0
    data = json.loads((workspace / "out" / "report.json").read_text())
    assert data["targetsScanned"] == 1
    assert data["findings"][0]["targetPath"] == "src/app.js"
    assert data["summaryBySeverity"] == {"critical": 1}


def test_unknown_format_is_rejected(workspace: Path) -> None:
    result = runner.invoke(app, ["scan", "src", "-f", "xml", "-q"])
    assert result.exit_code == 2


def test_bad_catalog_aborts_scan(workspace: Path) -> None:
    bad = {"signatures": [{"id": "x", "name": "X", "pattern": "(", "severity": "high", "category": "code-injection"}]}
    (workspace / "bad.json").write_text(json.dumps(bad))
    result = runner.invoke(app, ["scan", "src", "--catalog", "bad.json", "-q"])
    assert result.exit_code == 2
    assert "Catalog failed to load, scan aborted, see 1 error(s) below:" in result.output
    assert "does not compile" in result.output


def test_signature_runtime_error_exits_degraded(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    original = matcher_module._iter_matches

    def flaky(pattern, content):
        if "eval" in pattern.pattern:
            raise RuntimeError("engine exploded")
        return original(pattern, content)

    monkeypatch.setattr("patternscan.scanner.matcher._iter_matches", flaky)
    result = runner.invoke(app, ["scan", "src", "--fail-on", "none", "-q"])
    assert result.exit_code == 3
    assert "1 signature(s) skipped due to runtime errors" in result.output


def test_diff_reports_new_findings(workspace: Path) -> None:
    assert runner.invoke(app, ["scan", "src", "-f", "json", "-o", "before.json", "--fail-on", "none", "-q"]).exit_code == 0
    (workspace / "src" / "other.js").write_text("eval(more);\n")
    assert runner.invoke(app, ["scan", "src", "-f", "json", "-o", "after.json", "--fail-on", "none", "-q"]).exit_code == 0

    result = runner.invoke(app, ["diff", "before.json", "after.json", "--show"])
    assert result.exit_code == 0
    assert "+1 new" in result.output
    assert "1 persisting" in result.output
    assert "src/other.js#eval-usage#0" in result.output
    assert "degrading" in result.output


def test_diff_rejects_unreadable_report(workspace: Path) -> None:
    (workspace / "broken.json").write_text("nope")
    result = runner.invoke(app, ["diff", "broken.json", "broken.json"])
    assert result.exit_code == 2


def test_catalog_export_and_validate(workspace: Path) -> None:
    result = runner.invoke(app, ["catalog", "export", "catalog.json"])
    assert result.exit_code == 0
    assert (workspace / "catalog.json").exists()

    result = runner.invoke(app, ["catalog", "validate", "catalog.json"])
    assert result.exit_code == 0
    assert "19 signature(s), 11 categories" in result.output

    assert runner.invoke(app, ["catalog", "export", "catalog.json"]).exit_code == 1
    assert runner.invoke(app, ["catalog", "export", "catalog.json", "--force"]).exit_code == 0


def test_catalog_validate_lists_problems(workspace: Path) -> None:
    (workspace / "bad.json").write_text(json.dumps([{"id": "", "name": "", "pattern": "a*", "severity": "x"}]))
    result = runner.invoke(app, ["catalog", "validate", "bad.json"])
    assert result.exit_code == 2
    assert "id must not be empty" in result.output
    assert "can match the empty string" in result.output


def test_catalog_list_filters_by_severity(workspace: Path) -> None:
    result = runner.invoke(app, ["catalog", "list", "--severity", "critical"])
    assert result.exit_code == 0
    assert "eval-usage" in result.output
    assert "insecure-random" not in result.output


def test_config_init_and_path(workspace: Path) -> None:
    result = runner.invoke(app, ["config", "init"])
    assert result.exit_code == 0
    assert (workspace / "config.json").exists()

    result = runner.invoke(app, ["config", "init"], input="n\n")
    assert result.exit_code == 0
    assert "already exists" in result.output

    result = runner.invoke(app, ["config", "path"])
    assert "config.json" in result.output


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "patternscan v" in result.output
