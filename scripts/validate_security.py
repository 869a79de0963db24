#!/usr/bin/env python3
"""
Skill Validation - Code Block Security Module

Scans the fenced code blocks of a SKILL.md in a single pass for two
independent concerns:
1. Secret Detection (bearer tokens, live secret keys, inline API keys)
2. Language Labels (blocks without a language identifier)

A block can trigger both, either, or neither. Detected secrets are reported
by pattern label only; the matched text is never echoed.
"""

from __future__ import annotations

import argparse
import re
import sys
from dataclasses import dataclass
from pathlib import Path

from skill_validation_common import SECRET_PATTERNS, SKILL_FILE, ValidationReport, format_result

# ```lang\n body ```
CODE_BLOCK_PATTERN = re.compile(r"```(\w*)\n(.*?)```", re.S)


@dataclass(frozen=True)
class CodeBlock:
    """A fenced code block.

    Attributes:
        language: Language tag after the opening fence (may be empty)
        body: Text between the fences
        offset: Character offset of the opening fence
    """

    language: str
    body: str
    offset: int


def iter_code_blocks(content: str) -> list[CodeBlock]:
    """Extract all fenced code blocks in document order."""
    return [CodeBlock(m.group(1), m.group(2), m.start()) for m in CODE_BLOCK_PATTERN.finditer(content)]


def find_secrets(body: str) -> list[str]:
    """Return the labels of every secret pattern matching the text."""
    return [label for pattern, label in SECRET_PATTERNS if pattern.search(body)]


def validate_code_blocks(content: str, report: ValidationReport) -> None:
    """Scan code blocks for hardcoded secrets and missing language tags.

    Args:
        content: SKILL.md text
        report: Validation report to add results to
    """
    blocks = iter_code_blocks(content)
    unlabeled = 0

    for block in blocks:
        if not block.language:
            unlabeled += 1

        for label in find_secrets(block.body):
            report.error(
                f"possible hardcoded secret in code block ({label}, lang: {block.language or 'none'})",
                SKILL_FILE,
                "security",
            )

    if unlabeled > 0:
        report.warning(
            f"{unlabeled}/{len(blocks)} code block(s) missing language identifier",
            SKILL_FILE,
            "security",
        )
    elif blocks:
        report.passed(f"{len(blocks)} code block(s) all have language identifiers", SKILL_FILE, "security")


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Scan a skill's code blocks for secrets")
    parser.add_argument("skill_path", help="Path to the skill directory")
    args = parser.parse_args()

    skill_md = Path(args.skill_path) / SKILL_FILE
    if not skill_md.is_file():
        print(f"Error: {skill_md} does not exist", file=sys.stderr)
        return 1

    report = ValidationReport()
    validate_code_blocks(skill_md.read_text(encoding="utf-8"), report)

    for result in report.results:
        print(f"  {format_result(result)}")

    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
