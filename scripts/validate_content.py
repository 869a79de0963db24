#!/usr/bin/env python3
"""
Skill Validation - Content Consistency Checker

For SDK-flavored skills, checks that SKILL.md covers the expected topics
(authentication/setup, CRUD operations, pagination, error handling) and
mentions the SDK's package identifier. Other skills are skipped entirely.
"""

from __future__ import annotations

from skill_validation_common import (
    SDK_EXPECTED_SECTIONS,
    SKILL_FILE,
    SkillProfile,
    ValidationReport,
    profile_for,
)


def find_missing_sections(content: str) -> list[str]:
    """Return the source of every expected-topic pattern not found in the text."""
    return [pattern.pattern for pattern in SDK_EXPECTED_SECTIONS if not pattern.search(content)]


def validate_content_consistency(
    skill_name: str,
    content: str,
    report: ValidationReport,
    profiles: dict[str, SkillProfile] | None = None,
) -> None:
    """Validate SDK topic coverage and package references.

    Args:
        skill_name: Skill identity used for the profile lookup
        content: SKILL.md text
        report: Validation report to add results to
        profiles: Optional profile table overriding the defaults
    """
    profile = profile_for(skill_name, profiles)
    if not profile.is_sdk:
        return

    missing = find_missing_sections(content)
    if missing:
        report.warning(f"SDK skill missing expected sections: {', '.join(missing)}", SKILL_FILE, "content")
    else:
        report.passed("SDK sections present", SKILL_FILE, "content")

    if profile.package and profile.package not in content:
        report.warning(f'expected package "{profile.package}" not found in {SKILL_FILE}', SKILL_FILE, "content")
