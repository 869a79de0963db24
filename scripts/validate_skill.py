#!/usr/bin/env python3
"""
Skill Validation - Structure Validator

Validates the structure of an individual skill directory:
1. SKILL.md exists and starts with a frontmatter block
2. Required frontmatter fields (name, description, license, alwaysApply)
3. `name` matches the directory and carries the required prefix
4. `alwaysApply` is literal false
5. SKILL.md line count stays under the recommended maximum
6. metadata.json exists, parses, and has version/organization/references
7. Every references/... link points at an existing file

Usage:
    uv run python scripts/validate_skill.py path/to/skill/
    uv run python scripts/validate_skill.py path/to/skill/ --json

Exit codes:
    0 - No errors (warnings permitted)
    1 - Errors found
"""

from __future__ import annotations

import argparse
import json
import re
import sys
from dataclasses import dataclass
from pathlib import Path

from skill_validation_common import (
    MAX_SKILL_LINES,
    METADATA_FILE,
    REFERENCES_PREFIX,
    REQUIRED_FRONTMATTER_FIELDS,
    REQUIRED_METADATA_FIELDS,
    SKILL_FILE,
    SKILL_NAME_PREFIX,
    SkillReport,
    ValidationReport,
    format_result,
)
from validate_links import extract_links, strip_fragment

FRONTMATTER_PATTERN = re.compile(r"^---\n(.*?)\n---", re.S)
FRONTMATTER_LINE_PATTERN = re.compile(r"^(\w+):\s*(.+)$")

FrontmatterValue = str | bool


@dataclass(frozen=True)
class ValidatedSkill:
    """A skill whose document could be read and whose frontmatter parsed.

    Downstream checks (security, content, links, sync) consume this record.
    """

    name: str
    path: Path
    content: str
    frontmatter: dict[str, FrontmatterValue]
    lines: int


@dataclass(frozen=True)
class SkillAborted:
    """Terminal marker: the skill's remaining checks cannot run."""

    name: str
    reason: str


StructureOutcome = ValidatedSkill | SkillAborted


def _coerce_value(raw: str) -> FrontmatterValue:
    value = raw.strip()
    if value == "true":
        return True
    if value == "false":
        return False
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def parse_frontmatter(content: str) -> dict[str, FrontmatterValue] | None:
    """Parse the restricted key: value frontmatter block at the top of a document.

    Only single-level `key: value` lines are read; anything else inside the
    block is ignored. Returns None if the block is absent or unterminated.
    """
    match = FRONTMATTER_PATTERN.match(content)
    if not match:
        return None

    fields: dict[str, FrontmatterValue] = {}
    for line in match.group(1).split("\n"):
        kv = FRONTMATTER_LINE_PATTERN.match(line)
        if kv:
            fields[kv.group(1)] = _coerce_value(kv.group(2))
    return fields


def display_value(value: FrontmatterValue | None) -> str:
    """Render a frontmatter value the way it was written."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return "undefined" if value is None else value


def validate_frontmatter_fields(
    frontmatter: dict[str, FrontmatterValue],
    skill_name: str,
    report: ValidationReport,
    name_prefix: str = SKILL_NAME_PREFIX,
) -> None:
    """Validate required fields, naming and alwaysApply."""
    for field_name in REQUIRED_FRONTMATTER_FIELDS:
        if field_name not in frontmatter:
            report.error(f"missing required frontmatter field: {field_name}", SKILL_FILE, "structure")

    name = frontmatter.get("name")
    if name:
        name_text = display_value(name)
        if name != skill_name:
            report.error(f'name "{name_text}" does not match directory "{skill_name}"', SKILL_FILE, "structure")
        if not name_text.startswith(name_prefix):
            report.error(f'name "{name_text}" must start with "{name_prefix}"', SKILL_FILE, "structure")

    if "alwaysApply" in frontmatter and frontmatter["alwaysApply"] is not False:
        report.error(
            f"alwaysApply must be false, got: {display_value(frontmatter['alwaysApply'])}",
            SKILL_FILE,
            "structure",
        )


def validate_line_count(lines: int, report: ValidationReport, max_lines: int = MAX_SKILL_LINES) -> None:
    if lines > max_lines:
        report.warning(f"{SKILL_FILE} is {lines} lines (max recommended: {max_lines})", SKILL_FILE, "structure")
    else:
        report.passed(f"{SKILL_FILE}: {lines} lines", SKILL_FILE, "structure")


def validate_metadata(skill_path: Path, report: ValidationReport) -> None:
    """Validate metadata.json presence, syntax and required fields."""
    meta_file = skill_path / METADATA_FILE

    if not meta_file.is_file():
        report.error(f"{METADATA_FILE} not found", METADATA_FILE, "structure")
        return

    try:
        meta = json.loads(meta_file.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        report.error(f"{METADATA_FILE} is not valid JSON", METADATA_FILE, "structure")
        return

    if not isinstance(meta, dict):
        report.error(f"{METADATA_FILE} is not valid JSON (expected an object)", METADATA_FILE, "structure")
        return

    missing = [field_name for field_name in REQUIRED_METADATA_FIELDS if not meta.get(field_name)]
    for field_name in missing:
        report.error(f"{METADATA_FILE} missing field: {field_name}", METADATA_FILE, "structure")
    if not missing:
        report.passed(f"{METADATA_FILE} valid", METADATA_FILE, "structure")


def validate_reference_links(skill_path: Path, content: str, report: ValidationReport) -> None:
    """Validate that references/... links resolve inside the skill directory."""
    ref_links = [link for link in extract_links(content) if link.url.startswith(REFERENCES_PREFIX)]
    skill_root = skill_path.resolve()

    for link in ref_links:
        ref_path = (skill_path / strip_fragment(link.url)).resolve()
        if not ref_path.is_relative_to(skill_root):
            report.error(f"linked reference escapes skill directory: {link.url}", SKILL_FILE, "structure")
        elif not ref_path.exists():
            report.error(f"linked reference not found: {link.url}", SKILL_FILE, "structure")

    if ref_links:
        report.passed(f"{len(ref_links)} reference link(s) verified", SKILL_FILE, "structure")


def validate_structure(
    skill_path: Path,
    report: ValidationReport,
    name_prefix: str = SKILL_NAME_PREFIX,
    max_lines: int = MAX_SKILL_LINES,
) -> StructureOutcome:
    """Validate a skill directory's structure.

    Args:
        skill_path: Path to the skill directory (its name is the skill identity)
        report: Validation report to add results to
        name_prefix: Required prefix for the `name` field
        max_lines: Line count above which SKILL.md draws a warning

    Returns:
        ValidatedSkill for downstream checks, or SkillAborted when SKILL.md is
        missing, unreadable, or has no frontmatter
    """
    skill_name = skill_path.name
    skill_md = skill_path / SKILL_FILE

    if not skill_md.is_file():
        report.error(f"{SKILL_FILE} not found", SKILL_FILE, "structure")
        return SkillAborted(skill_name, "missing document")

    try:
        content = skill_md.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        report.error(f"{SKILL_FILE} could not be read: {e}", SKILL_FILE, "structure")
        return SkillAborted(skill_name, "unreadable document")

    lines = content.count("\n") + 1

    frontmatter = parse_frontmatter(content)
    if frontmatter is None:
        report.error(f"{SKILL_FILE} has no valid YAML frontmatter", SKILL_FILE, "structure")
        return SkillAborted(skill_name, "no frontmatter")

    validate_frontmatter_fields(frontmatter, skill_name, report, name_prefix)
    validate_line_count(lines, report, max_lines)
    validate_metadata(skill_path, report)
    validate_reference_links(skill_path, content, report)

    return ValidatedSkill(skill_name, skill_path, content, frontmatter, lines)


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Validate the structure of a skill directory")
    parser.add_argument("skill_path", help="Path to the skill directory")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    args = parser.parse_args()

    skill_path = Path(args.skill_path)
    if not skill_path.is_dir():
        print(f"Error: {skill_path} is not a directory", file=sys.stderr)
        return 1

    report = SkillReport(skill_name=skill_path.name)
    validate_structure(skill_path, report)

    if args.json:
        print(report.to_json())
    else:
        print(skill_path.name)
        for result in report.results:
            print(f"  {format_result(result)}")

    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
