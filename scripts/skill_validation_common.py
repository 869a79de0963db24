#!/usr/bin/env python3
"""
Skill Validation - Common Module

Shared validation infrastructure for all skill validators.
This module contains:
- Type definitions (Level, ValidationResult, ValidationReport, SkillReport)
- Skill classification tables (SkillKind, SkillProfile, SKILL_PROFILES)
- Common constants (required fields, secret patterns, SDK sections)
- Configuration loading (ValidatorConfig, load_config)
- Utility functions (colors, formatting, exit codes)

All individual validators should import from this module to ensure consistency.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Literal

import yaml

# =============================================================================
# Type Definitions
# =============================================================================

# Two severities only:
# - ERROR: structural or safety defect, fails the run (non-zero exit code)
# - WARNING: advisory/quality issue, always reported, never fails the run
# - PASSED: check passed
Level = Literal["ERROR", "WARNING", "PASSED"]

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_OK = 0  # No errors (warnings permitted)
EXIT_ERROR = 1  # One or more errors recorded

# =============================================================================
# Skill Layout Constants
# =============================================================================

SKILL_FILE = "SKILL.md"
METADATA_FILE = "metadata.json"
REFERENCES_PREFIX = "references/"

SKILL_NAME_PREFIX = "apideck-"

REQUIRED_FRONTMATTER_FIELDS = ("name", "description", "license", "alwaysApply")
REQUIRED_METADATA_FIELDS = ("version", "organization", "references")

# Maximum recommended SKILL.md line count
MAX_SKILL_LINES = 500

# Seconds allowed for a single external liveness probe
DEFAULT_LINK_TIMEOUT = 10.0
DEFAULT_MAX_CONCURRENCY = 20

# =============================================================================
# Security Patterns
# =============================================================================

# Credential shapes looked for inside fenced code blocks.
# Labels are what gets reported; the matched text never is.
SECRET_PATTERNS = [
    (re.compile(r"Bearer\s+[A-Za-z0-9\-._~+/]{20,}"), "bearer token"),
    (re.compile(r"sk[-_]live[-_][A-Za-z0-9]{20,}"), "live secret key"),
    (re.compile(r"api[_-]?key\s*[:=]\s*[\"'][A-Za-z0-9]{20,}[\"']", re.I), "inline API key"),
]

# =============================================================================
# SDK Skill Classification
# =============================================================================

# Topics every SDK-flavored skill is expected to cover, in report order
SDK_EXPECTED_SECTIONS = [
    re.compile(r"authentication|setup|install", re.I),
    re.compile(r"crud|operations|create.*read|list.*get", re.I),
    re.compile(r"pagination|cursor", re.I),
    re.compile(r"error", re.I),
]


class SkillKind(str, Enum):
    """Category of a skill, selecting which content checks apply."""

    GENERAL = "general"
    SDK = "sdk"


@dataclass(frozen=True)
class SkillProfile:
    """Classification of a single skill identity.

    Attributes:
        kind: Which family of content checks applies
        package: Package identifier the document is expected to mention (SDK only)
    """

    kind: SkillKind = SkillKind.GENERAL
    package: str | None = None

    @property
    def is_sdk(self) -> bool:
        return self.kind is SkillKind.SDK


GENERAL_PROFILE = SkillProfile()

SKILL_PROFILES: dict[str, SkillProfile] = {
    "apideck-node": SkillProfile(SkillKind.SDK, "@apideck/unify"),
    "apideck-python": SkillProfile(SkillKind.SDK, "apideck-unify"),
    "apideck-dotnet": SkillProfile(SkillKind.SDK, "ApideckUnifySdk"),
    "apideck-java": SkillProfile(SkillKind.SDK, "com.apideck:unify"),
    "apideck-go": SkillProfile(SkillKind.SDK, "github.com/apideck-libraries/sdk-go"),
    "apideck-php": SkillProfile(SkillKind.SDK, "apideck-libraries/sdk-php"),
    "apideck-rest": SkillProfile(SkillKind.SDK),
}


def profile_for(skill_name: str, profiles: dict[str, SkillProfile] | None = None) -> SkillProfile:
    """Look up the profile for a skill identity (GENERAL when unknown)."""
    table = SKILL_PROFILES if profiles is None else profiles
    return table.get(skill_name, GENERAL_PROFILE)


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(Exception):
    """Raised when a validator configuration file cannot be used."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


@dataclass
class ValidatorConfig:
    """Inputs and tunables for a validation run.

    Attributes:
        skills_dir: Directory holding the skill subdirectories
        provider_targets: Mirror directories expected to hold copies of each SKILL.md
        name_prefix: Required prefix for skill directory names and `name` fields
        max_lines: SKILL.md line count above which a warning is raised
        profiles: Skill identity -> SkillProfile lookup
        link_timeout: Per-probe timeout in seconds for external URL checks
        max_concurrency: Upper bound on in-flight external URL probes
    """

    skills_dir: Path
    provider_targets: list[Path] = field(default_factory=list)
    name_prefix: str = SKILL_NAME_PREFIX
    max_lines: int = MAX_SKILL_LINES
    profiles: dict[str, SkillProfile] = field(default_factory=lambda: dict(SKILL_PROFILES))
    link_timeout: float = DEFAULT_LINK_TIMEOUT
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY

    @property
    def repo_root(self) -> Path:
        return self.skills_dir.resolve().parent

    @classmethod
    def for_skills_dir(cls, skills_dir: Path) -> ValidatorConfig:
        """Build the default configuration for a skills directory."""
        # Path(".").parent is Path("."), so resolve before stepping up
        repo_root = skills_dir.resolve().parent
        return cls(
            skills_dir=skills_dir,
            provider_targets=[
                repo_root / "providers" / "claude" / "plugin" / "skills",
                repo_root / "providers" / "cursor" / "plugin" / "skills",
            ],
        )


def _expect_type(path: Path, key: str, value: Any, expected: type | tuple[type, ...]) -> Any:
    # No setting is boolean, and bool would otherwise pass as int
    if isinstance(value, bool) or not isinstance(value, expected):
        raise ConfigError(path, f"'{key}' has invalid type {type(value).__name__}")
    return value


def load_config(path: Path, base: ValidatorConfig) -> ValidatorConfig:
    """Apply overrides from a YAML configuration file to a base configuration.

    Recognized keys: name_prefix, max_lines, provider_targets, link_timeout,
    max_concurrency, sdk_skills. Relative provider target paths are resolved
    against the configuration file's directory.

    Args:
        path: Path to the YAML file
        base: Configuration to start from (not modified)

    Returns:
        New ValidatorConfig with overrides applied

    Raises:
        ConfigError: If the file is unreadable, malformed, or has wrongly-typed keys
    """
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(path, f"cannot read config: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(path, f"invalid YAML: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(path, "config must be a mapping")

    config = ValidatorConfig(
        skills_dir=base.skills_dir,
        provider_targets=list(base.provider_targets),
        name_prefix=base.name_prefix,
        max_lines=base.max_lines,
        profiles=dict(base.profiles),
        link_timeout=base.link_timeout,
        max_concurrency=base.max_concurrency,
    )

    if "name_prefix" in raw:
        config.name_prefix = _expect_type(path, "name_prefix", raw["name_prefix"], str)
    if "max_lines" in raw:
        config.max_lines = _expect_type(path, "max_lines", raw["max_lines"], int)
    if "link_timeout" in raw:
        config.link_timeout = float(_expect_type(path, "link_timeout", raw["link_timeout"], (int, float)))
    if "max_concurrency" in raw:
        config.max_concurrency = _expect_type(path, "max_concurrency", raw["max_concurrency"], int)
        if config.max_concurrency < 1:
            raise ConfigError(path, "'max_concurrency' must be at least 1")

    if "provider_targets" in raw:
        targets = _expect_type(path, "provider_targets", raw["provider_targets"], list)
        config.provider_targets = [path.parent / _expect_type(path, "provider_targets", t, str) for t in targets]

    if "sdk_skills" in raw:
        sdk_skills = _expect_type(path, "sdk_skills", raw["sdk_skills"], dict)
        profiles: dict[str, SkillProfile] = {}
        for skill_name, package in sdk_skills.items():
            if package is not None and not isinstance(package, str):
                raise ConfigError(path, f"package for '{skill_name}' must be a string or null")
            profiles[str(skill_name)] = SkillProfile(SkillKind.SDK, package)
        config.profiles = profiles

    return config


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class ValidationResult:
    """Single validation check result.

    Attributes:
        level: Severity level (ERROR, WARNING, PASSED)
        message: Human-readable description of the result
        file: Optional file path related to the result
        phase: Optional validation phase (structure, security, content, links, sync, liveness)
    """

    level: Level
    message: str
    file: str | None = None
    phase: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, str | None] = {"level": self.level, "message": self.message}
        if self.file is not None:
            result["file"] = self.file
        if self.phase is not None:
            result["phase"] = self.phase
        return result


@dataclass
class ValidationReport:
    """Validation results collection.

    This is the base class that all validators add results to.
    Results are accumulated in order; nothing stops at the first error.
    """

    results: list[ValidationResult] = field(default_factory=list)

    def add(self, level: Level, message: str, file: str | None = None, phase: str | None = None) -> None:
        """Add a validation result."""
        self.results.append(ValidationResult(level, message, file, phase))

    def passed(self, message: str, file: str | None = None, phase: str | None = None) -> None:
        """Add a passed check."""
        self.add("PASSED", message, file, phase)

    def warning(self, message: str, file: str | None = None, phase: str | None = None) -> None:
        """Add a warning: always reported, never fails the run."""
        self.add("WARNING", message, file, phase)

    def error(self, message: str, file: str | None = None, phase: str | None = None) -> None:
        """Add an error: fails the run."""
        self.add("ERROR", message, file, phase)

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.results if r.level == "ERROR")

    @property
    def warning_count(self) -> int:
        return sum(1 for r in self.results if r.level == "WARNING")

    @property
    def has_errors(self) -> bool:
        """Check if any ERROR results exist."""
        return any(r.level == "ERROR" for r in self.results)

    @property
    def exit_code(self) -> int:
        """Get exit code: failure if and only if an error was recorded."""
        return EXIT_ERROR if self.has_errors else EXIT_OK

    def count_by_level(self) -> dict[str, int]:
        """Get count of results by level."""
        counts: dict[str, int] = {"ERROR": 0, "WARNING": 0, "PASSED": 0}
        for r in self.results:
            counts[r.level] = counts.get(r.level, 0) + 1
        return counts

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "exit_code": self.exit_code,
            "counts": self.count_by_level(),
            "results": [r.to_dict() for r in self.results],
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert report to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


@dataclass
class SkillReport(ValidationReport):
    """Validation report for one skill directory."""

    skill_name: str = ""

    def to_dict(self) -> dict[str, object]:
        data = super().to_dict()
        data["skill"] = self.skill_name
        return data


# =============================================================================
# Color Formatting (for terminal output)
# =============================================================================

# ANSI color codes
COLORS = {
    "ERROR": "\033[31m",  # Red
    "WARNING": "\033[33m",  # Yellow
    "PASSED": "\033[32m",  # Green
    "RESET": "\033[0m",  # Reset
    "BOLD": "\033[1m",  # Bold
}

# Console labels per level
LABELS = {
    "ERROR": "FAIL",
    "WARNING": "WARN",
    "PASSED": "PASS",
}


def colorize(text: str, level: str) -> str:
    """Apply color to text based on level."""
    color = COLORS.get(level, "")
    return f"{color}{text}{COLORS['RESET']}"


def bold(text: str) -> str:
    return colorize(text, "BOLD")


def format_result(result: ValidationResult) -> str:
    """Format a single validation result for terminal output."""
    return f"{colorize(LABELS[result.level], result.level)} {result.message}"
