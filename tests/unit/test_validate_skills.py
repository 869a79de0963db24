#!/usr/bin/env python3
"""Tests for validate_skills.py - the suite runner and its CLI."""

import json
import subprocess
import sys
from pathlib import Path

import pytest
import validate_skills
from check_links import ProbeResult
from conftest import MakeSkill, skill_document
from skill_validation_common import ValidatorConfig
from validate_skills import discover_skill_dirs, main, validate_all, validate_skill_dir

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
SCRIPT_PATH = PROJECT_ROOT / "scripts" / "validate_skills.py"


def run_validator(*args: str) -> subprocess.CompletedProcess[str]:
    """Run validate_skills.py with given args and return result."""
    cmd = [sys.executable, str(SCRIPT_PATH)] + list(args)
    return subprocess.run(cmd, capture_output=True, text=True, timeout=60)


def isolated_config(skills_dir: Path) -> ValidatorConfig:
    """Configuration without provider targets, so sync produces no warnings."""
    return ValidatorConfig(skills_dir=skills_dir)


def fake_probes(urls: list[str], timeout: float, max_concurrency: int) -> list[ProbeResult]:
    """Treat any URL containing 'gone' as a 404, everything else as alive."""
    return [ProbeResult(url, ok=False, status=404) if "gone" in url else ProbeResult(url, True, 200) for url in urls]


class TestDiscovery:
    def test_only_prefixed_directories_sorted(self, skills_dir: Path) -> None:
        """Only directories with the name prefix are discovered, sorted by name."""
        for name in ["apideck-hris", "apideck-crm", "shared", "README.md"]:
            if name.endswith(".md"):
                (skills_dir / name).write_text("# Skills\n")
            else:
                (skills_dir / name).mkdir()
        (skills_dir / "apideck-file.txt").write_text("not a dir\n")

        assert [p.name for p in discover_skill_dirs(skills_dir, "apideck-")] == ["apideck-crm", "apideck-hris"]


class TestEndToEnd:
    """Scenario tests over a full skills tree."""

    def test_valid_skill_has_no_errors_or_warnings(self, make_skill: MakeSkill, skills_dir: Path) -> None:
        """A complete skill produces only passes."""
        make_skill("apideck-crm")

        run = validate_all(isolated_config(skills_dir))

        assert run.error_count == 0
        assert run.warning_count == 0
        assert run.exit_code == 0
        (report,) = run.skills
        assert [r.level for r in report.results] == ["PASSED", "PASSED"]

    def test_always_apply_true_and_missing_metadata(self, make_skill: MakeSkill, skills_dir: Path) -> None:
        """alwaysApply true and a missing metadata.json are two errors."""
        make_skill("apideck-crm", document=skill_document(always_apply="true"), metadata=None)

        run = validate_all(isolated_config(skills_dir))

        assert run.error_count == 2
        assert run.exit_code != 0
        messages = [r.message for r in run.skills[0].results if r.level == "ERROR"]
        assert messages == ["alwaysApply must be false, got: true", "metadata.json not found"]

    def test_aborted_skill_does_not_stop_the_run(self, make_skill: MakeSkill, skills_dir: Path) -> None:
        """Skills after an aborted one are still validated."""
        make_skill("apideck-accounting", document=None)
        make_skill("apideck-crm", document="no frontmatter\n```\nBearer abcdefghijklmnopqrstuvwxyz0123\n```\n")
        make_skill("apideck-hris")

        run = validate_all(isolated_config(skills_dir))

        assert [r.skill_name for r in run.skills] == ["apideck-accounting", "apideck-crm", "apideck-hris"]
        # Secret scanning is skipped for the skill without frontmatter
        assert [r.error_count for r in run.skills] == [1, 1, 0]
        assert run.exit_code == 1

    def test_check_order_and_url_dedup(self, make_skill: MakeSkill, skills_dir: Path) -> None:
        """Checks run in a fixed order and URLs are deduplicated across skills."""
        body = (
            "# Node SDK\n\n"
            "```\nnpm install\n```\n\n"
            "[Docs](https://developers.apideck.com) [Bad](https:// not a url)\n"
        )
        make_skill("apideck-crm", document=skill_document(name="apideck-crm", body=body + "[Docs](https://apideck.com)\n"))
        make_skill("apideck-node", document=skill_document(name="apideck-node", body=body))
        config = ValidatorConfig.for_skills_dir(skills_dir)

        run = validate_all(config)

        assert run.external_urls == ["https://developers.apideck.com", "https://apideck.com"]
        node = run.skills[1]
        phases = [r.phase for r in node.results]
        first_seen = list(dict.fromkeys(phases))
        assert first_seen == ["structure", "security", "content", "links", "sync"]
        assert run.liveness is None

    def test_idempotent_counts(self, make_skill: MakeSkill, skills_dir: Path) -> None:
        """Two runs over an unchanged tree give identical reports."""
        make_skill("apideck-crm", document=skill_document(body="[x](missing.md)\n```\ncode\n```\n"))
        make_skill("apideck-ats", metadata={"version": "1"})
        config = ValidatorConfig.for_skills_dir(skills_dir)

        first = validate_all(config)
        second = validate_all(config)

        assert (first.error_count, first.warning_count) == (second.error_count, second.warning_count)
        assert first.to_dict() == second.to_dict()

    def test_validate_skill_dir_returns_urls(self, make_skill: MakeSkill, skills_dir: Path) -> None:
        """A single skill directory yields its report and external URLs."""
        skill_path = make_skill(document=skill_document(body="[a](https://apideck.com/a)\n"))

        report, urls = validate_skill_dir(skill_path, isolated_config(skills_dir))

        assert urls == ["https://apideck.com/a"]
        assert report.skill_name == "apideck-crm"


class TestDefaultProviderTargets:
    """Tests for provider targets derived from the skills directory."""

    def test_targets_sit_beside_skills_dir(self, skills_dir: Path, tmp_path: Path) -> None:
        """Default targets live under the skills directory's parent."""
        config = ValidatorConfig.for_skills_dir(skills_dir)

        assert config.provider_targets == [
            tmp_path.resolve() / "providers" / "claude" / "plugin" / "skills",
            tmp_path.resolve() / "providers" / "cursor" / "plugin" / "skills",
        ]

    def test_dot_skills_dir_uses_real_parent(
        self,
        make_skill: MakeSkill,
        skills_dir: Path,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Running on '.' from inside the skills directory finds the real mirrors."""
        skill_path = make_skill()
        for provider in ("claude", "cursor"):
            mirror = tmp_path / "providers" / provider / "plugin" / "skills" / skill_path.name
            mirror.mkdir(parents=True)
            (mirror / "SKILL.md").write_bytes((skill_path / "SKILL.md").read_bytes())
        monkeypatch.chdir(skills_dir)

        exit_code = main([".", "--json"])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert output["summary"]["warnings"] == 0


class TestLivenessStage:
    """Tests for the opt-in external URL stage."""

    def test_probes_run_once_over_unique_urls(
        self, make_skill: MakeSkill, skills_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Shared URLs are probed once and broken ones only warn."""
        calls: list[list[str]] = []

        def recording_probes(urls: list[str], timeout: float, max_concurrency: int) -> list[ProbeResult]:
            calls.append(list(urls))
            return fake_probes(urls, timeout, max_concurrency)

        monkeypatch.setattr(validate_skills, "run_probes", recording_probes)
        shared = "[a](https://apideck.com) [b](https://apideck.com/gone)\n"
        make_skill("apideck-crm", document=skill_document(name="apideck-crm", body=shared))
        make_skill("apideck-hris", document=skill_document(name="apideck-hris", body=shared))

        run = validate_all(isolated_config(skills_dir), check_links=True)

        assert calls == [["https://apideck.com", "https://apideck.com/gone"]]
        assert run.error_count == 0
        assert run.warning_count == 1
        assert run.exit_code == 0

    def test_not_requested_means_no_probes(
        self, make_skill: MakeSkill, skills_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Without check_links no URL is probed."""

        def fail(*args: object, **kwargs: object) -> list[ProbeResult]:
            raise AssertionError("probes must not run")

        monkeypatch.setattr(validate_skills, "run_probes", fail)
        make_skill(document=skill_document(body="[a](https://apideck.com)\n"))

        run = validate_all(isolated_config(skills_dir))

        assert run.liveness is None
        assert run.probe_results == []

    def test_console_lists_broken_urls(
        self,
        make_skill: MakeSkill,
        skills_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Broken URLs print as BROKEN lines with their status and still exit zero."""
        monkeypatch.setattr(validate_skills, "run_probes", fake_probes)
        make_skill(document=skill_document(body="[a](https://apideck.com) [b](https://apideck.com/gone)\n"))

        exit_code = main([str(skills_dir), "--check-links", "--provider-target", str(skills_dir)])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Checking 2 external URL(s)..." in out
        broken_lines = [line for line in out.splitlines() if "BROKEN" in line]
        assert len(broken_lines) == 1
        assert broken_lines[0].endswith("https://apideck.com/gone (404)")
        assert "1 broken URL(s)" in out

    def test_console_reports_all_reachable(
        self,
        make_skill: MakeSkill,
        skills_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """With every URL alive the section shows a single pass line."""
        monkeypatch.setattr(validate_skills, "run_probes", fake_probes)
        make_skill(document=skill_document(body="[a](https://apideck.com)\n"))

        main([str(skills_dir), "--check-links", "--provider-target", str(skills_dir)])

        out = capsys.readouterr().out
        assert "BROKEN" not in out
        assert "All external URLs reachable" in out


class TestMainInProcess:
    def test_json_output(self, make_skill: MakeSkill, skills_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """--json prints the summary, per-skill reports and liveness state."""
        make_skill()

        exit_code = main([str(skills_dir), "--json"])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert output["summary"] == {"skills": 1, "errors": 0, "warnings": 2}
        assert output["skills"][0]["skill"] == "apideck-crm"
        assert output["liveness"] is None

    def test_provider_target_override(
        self, make_skill: MakeSkill, skills_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """--provider-target replaces the default mirrors."""
        skill_path = make_skill()
        mirror = tmp_path / "mirror"
        (mirror / skill_path.name).mkdir(parents=True)
        (mirror / skill_path.name / "SKILL.md").write_bytes((skill_path / "SKILL.md").read_bytes())

        exit_code = main([str(skills_dir), "--json", "--provider-target", str(mirror)])

        assert exit_code == 0
        assert json.loads(capsys.readouterr().out)["summary"]["warnings"] == 0

    def test_config_file_in_skills_dir(
        self, make_skill: MakeSkill, skills_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """A skills-validation.yaml in the skills directory is picked up."""
        make_skill(document=skill_document(body="line\n" * 20))
        (skills_dir / "skills-validation.yaml").write_text("max_lines: 10\nprovider_targets: []\n")

        exit_code = main([str(skills_dir), "--json"])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert output["summary"]["warnings"] == 1

    def test_bad_config_is_a_usage_error(
        self, skills_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """A malformed config file is reported on stderr with exit code 1."""
        config = tmp_path / "bad.yaml"
        config.write_text("max_lines: [1, 2\n")

        assert main([str(skills_dir), "--config", str(config)]) == 1
        assert "invalid YAML" in capsys.readouterr().err

    def test_missing_skills_dir(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """A missing skills directory is a usage error."""
        assert main([str(tmp_path / "nope")]) == 1
        assert "is not a directory" in capsys.readouterr().err


class TestCli:
    """Tests running the script as a subprocess."""

    def test_passing_run_exits_zero(self, make_skill: MakeSkill, skills_dir: Path) -> None:
        """A valid tree exits 0 and reports missing mirrors as warnings."""
        make_skill()

        result = run_validator(str(skills_dir))

        assert result.returncode == 0
        assert "Found 1 skill(s)" in result.stdout
        assert "PASSED" in result.stdout
        assert "not synced to providers/claude/plugin/skills" in result.stdout

    def test_failing_run_exits_nonzero(self, make_skill: MakeSkill, skills_dir: Path) -> None:
        """Errors print FAIL lines and a FAILED summary with exit code 1."""
        make_skill(document=skill_document(always_apply="true"), metadata=None)

        result = run_validator(str(skills_dir))

        assert result.returncode == 1
        assert "FAIL" in result.stdout
        assert "FAILED" in result.stdout
        assert "2 error(s) found" in result.stdout
