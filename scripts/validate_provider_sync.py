#!/usr/bin/env python3
"""
Skill Validation - Provider Sync Checker

Compares a skill's SKILL.md against its copy in each provider target
directory. Missing or differing copies are warnings only: distribution to
providers is a separate step.
"""

from __future__ import annotations

from pathlib import Path

from skill_validation_common import SKILL_FILE, ValidationReport


def display_target(target_base: Path, repo_root: Path | None) -> str:
    """Render a provider target relative to the repository root when possible."""
    if repo_root is not None:
        try:
            return target_base.resolve().relative_to(repo_root.resolve()).as_posix()
        except ValueError:
            pass
    return str(target_base)


def validate_provider_sync(
    skill_path: Path,
    provider_targets: list[Path],
    report: ValidationReport,
    repo_root: Path | None = None,
) -> None:
    """Validate that each provider target holds an identical SKILL.md copy.

    Args:
        skill_path: Canonical skill directory
        provider_targets: Provider target base directories
        report: Validation report to add results to
        repo_root: Base for displaying target paths
    """
    skill_md = skill_path / SKILL_FILE
    if not skill_md.is_file():
        return

    source = skill_md.read_bytes()

    for target_base in provider_targets:
        label = display_target(target_base, repo_root)
        target_file = target_base / skill_path.name / SKILL_FILE

        if not target_file.is_file():
            report.warning(f"not synced to {label}", str(target_file), "sync")
            continue

        if target_file.read_bytes() != source:
            report.warning(f"out of sync with {label}", str(target_file), "sync")
