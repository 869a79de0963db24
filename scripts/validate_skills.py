#!/usr/bin/env python3
"""
Skill Validation - Suite Runner

Validates every skill directory under a skills root for structure, content,
and consistency, then optionally probes the external URLs they link to.

Per skill, checks run in a fixed order:
1. Structure (SKILL.md, frontmatter, metadata.json, reference links)
2. Code blocks (hardcoded secrets, language identifiers)
3. Content consistency (SDK skills only)
4. Links (empty targets, malformed URLs, relative targets)
5. Provider sync (copies under each provider target)

A skill whose SKILL.md is missing or has no frontmatter skips steps 2-5;
the run always continues with the next skill.

Usage:
    uv run python scripts/validate_skills.py skills/
    uv run python scripts/validate_skills.py skills/ --check-links
    uv run python scripts/validate_skills.py skills/ --json
    uv run python scripts/validate_skills.py skills/ --config skills-validation.yaml

Exit codes:
    0 - No errors (warnings permitted)
    1 - Errors found, or invalid invocation
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

from check_links import ProbeResult, format_probe_result, record_probe_results, run_probes
from skill_validation_common import (
    COLORS,
    EXIT_ERROR,
    EXIT_OK,
    ConfigError,
    SkillReport,
    ValidationReport,
    ValidatorConfig,
    bold,
    colorize,
    format_result,
    load_config,
)
from validate_content import validate_content_consistency
from validate_links import validate_links
from validate_provider_sync import validate_provider_sync
from validate_security import validate_code_blocks
from validate_skill import SkillAborted, ValidatedSkill, validate_structure

# Looked up in the skills directory when --config is not given
CONFIG_FILENAME = "skills-validation.yaml"


@dataclass
class RunReport:
    """Aggregated results of one validation run.

    Attributes:
        skills: One report per skill directory, in discovery order
        external_urls: Deduplicated external URLs across all skills, first-seen order
        liveness: Liveness probe results (None when probing was not requested)
        probe_results: Raw probe outcomes
    """

    skills: list[SkillReport] = field(default_factory=list)
    external_urls: list[str] = field(default_factory=list)
    liveness: ValidationReport | None = None
    probe_results: list[ProbeResult] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        # Liveness never contributes errors
        return sum(r.error_count for r in self.skills)

    @property
    def warning_count(self) -> int:
        total = sum(r.warning_count for r in self.skills)
        if self.liveness is not None:
            total += self.liveness.warning_count
        return total

    @property
    def exit_code(self) -> int:
        return EXIT_ERROR if self.error_count else EXIT_OK

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "exit_code": self.exit_code,
            "summary": {
                "skills": len(self.skills),
                "errors": self.error_count,
                "warnings": self.warning_count,
            },
            "skills": [r.to_dict() for r in self.skills],
            "external_urls": self.external_urls,
            "liveness": None
            if self.liveness is None
            else [
                {"url": p.url, "ok": p.ok, "status": p.status, "error": p.error}
                for p in self.probe_results
            ],
        }


def discover_skill_dirs(skills_dir: Path, prefix: str) -> list[Path]:
    """List skill directories (names starting with prefix), sorted by name."""
    return sorted(
        (p for p in skills_dir.iterdir() if p.is_dir() and p.name.startswith(prefix)),
        key=lambda p: p.name,
    )


def validate_skill_dir(skill_path: Path, config: ValidatorConfig) -> tuple[SkillReport, list[str]]:
    """Run every per-skill check on one skill directory.

    Returns:
        Tuple of (skill report, external URLs found in the document)
    """
    report = SkillReport(skill_name=skill_path.name)

    match validate_structure(skill_path, report, config.name_prefix, config.max_lines):
        case SkillAborted():
            return report, []
        case ValidatedSkill(name=name, content=content):
            validate_code_blocks(content, report)
            validate_content_consistency(name, content, report, config.profiles)
            urls = validate_links(content, skill_path, report)
            validate_provider_sync(skill_path, config.provider_targets, report, config.repo_root)
            return report, urls


def validate_all(config: ValidatorConfig, check_links: bool = False) -> RunReport:
    """Validate all skills under config.skills_dir.

    Args:
        config: Run configuration
        check_links: Probe the deduplicated external URLs after all skills

    Returns:
        RunReport with per-skill reports and totals
    """
    run = RunReport()
    seen: dict[str, None] = {}

    for skill_path in discover_skill_dirs(config.skills_dir, config.name_prefix):
        report, urls = validate_skill_dir(skill_path, config)
        run.skills.append(report)
        seen.update(dict.fromkeys(urls))

    run.external_urls = list(seen)

    if check_links:
        run.liveness = ValidationReport()
        if run.external_urls:
            run.probe_results = run_probes(run.external_urls, config.link_timeout, config.max_concurrency)
            record_probe_results(run.probe_results, run.liveness)

    return run


def print_results(run: RunReport) -> None:
    """Print the run report in human-readable format."""
    print(bold("\nSkill Validation\n"))
    print(f"Found {len(run.skills)} skill(s)\n")

    for report in run.skills:
        print(bold(report.skill_name))
        for result in report.results:
            print(f"  {format_result(result)}")
        print()

    if run.liveness is not None and run.external_urls:
        print(bold(f"Checking {len(run.external_urls)} external URL(s)...\n"))
        broken = [p for p in run.probe_results if not p.ok]
        for probe in broken:
            print(f"  {format_probe_result(probe)}")
        if broken:
            print(f"\n  {len(broken)} broken URL(s)")
        else:
            for result in run.liveness.results:
                print(f"  {format_result(result)}")
        print()

    errors = run.error_count
    warnings = run.warning_count
    print(bold("Summary"))
    print(f"  Skills: {len(run.skills)}")
    print(f"  Errors: {colorize(str(errors), 'PASSED' if errors == 0 else 'ERROR')}")
    print(f"  Warnings: {colorize(str(warnings), 'PASSED' if warnings == 0 else 'WARNING')}")
    print()

    if errors:
        print(f"{COLORS['ERROR']}FAILED{COLORS['RESET']}: {errors} error(s) found\n")
    else:
        print(f"{COLORS['PASSED']}PASSED{COLORS['RESET']}: all validations passed\n")


def print_json(run: RunReport) -> None:
    """Print the run report as JSON."""
    print(json.dumps(run.to_dict(), indent=2))


def build_config(args: argparse.Namespace, skills_dir: Path) -> ValidatorConfig:
    """Combine defaults, the optional YAML config file and CLI overrides."""
    config = ValidatorConfig.for_skills_dir(skills_dir)

    config_path = Path(args.config) if args.config else skills_dir / CONFIG_FILENAME
    if args.config or config_path.is_file():
        config = load_config(config_path, config)

    if args.provider_target is not None:
        config.provider_targets = [Path(p) for p in args.provider_target]
    if args.timeout is not None:
        config.link_timeout = args.timeout
    if args.max_concurrency is not None:
        config.max_concurrency = args.max_concurrency
    return config


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Validate all skills for structure, content, and consistency")
    parser.add_argument("skills_dir", nargs="?", help="Skills root directory (default: ./skills)")
    parser.add_argument("--check-links", action="store_true", help="Also verify external URLs via HEAD requests")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log external URL probes to stderr")
    parser.add_argument("--config", help=f"YAML config file (default: <skills_dir>/{CONFIG_FILENAME} if present)")
    parser.add_argument(
        "--provider-target",
        action="append",
        metavar="DIR",
        help="Provider target directory to check sync against (repeatable; replaces the defaults)",
    )
    parser.add_argument("--timeout", type=float, help="Per-URL timeout in seconds for --check-links")
    parser.add_argument("--max-concurrency", type=int, help="Maximum URL probes in flight for --check-links")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, stream=sys.stderr)

    skills_dir = Path(args.skills_dir) if args.skills_dir else Path.cwd() / "skills"
    if not skills_dir.is_dir():
        print(f"Error: {skills_dir} is not a directory", file=sys.stderr)
        return EXIT_ERROR

    if args.max_concurrency is not None and args.max_concurrency < 1:
        print("Error: --max-concurrency must be at least 1", file=sys.stderr)
        return EXIT_ERROR

    try:
        config = build_config(args, skills_dir)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    run = validate_all(config, check_links=args.check_links)

    if args.json:
        print_json(run)
    else:
        print_results(run)

    return run.exit_code


if __name__ == "__main__":
    sys.exit(main())
