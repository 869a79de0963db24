#!/usr/bin/env python3
"""
Skill Validation - Link Validator

Extracts markdown links from SKILL.md and validates each one by kind:
1. External (http/https): strict URL syntax check, collected for liveness probing
2. Internal reference (references/...): checked by the structure validator
3. Anchor (#...) and mail (mailto:...): always valid
4. Relative file: resolved against the skill directory, warning when missing

Usage:
    uv run python scripts/validate_links.py path/to/skill/
    uv run python scripts/validate_links.py path/to/skill/ --json

Exit codes:
    0 - No errors (warnings permitted)
    1 - Errors found
"""

from __future__ import annotations

import argparse
import ipaddress
import re
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from urllib.parse import urlsplit

from skill_validation_common import REFERENCES_PREFIX, SKILL_FILE, ValidationReport, format_result

# Markdown inline link: [text](target)
LINK_PATTERN = re.compile(r"\[([^\]]*)\]\(([^)]*)\)")

# A single DNS label (unicode letters allowed for IDN hosts)
HOST_LABEL_PATTERN = re.compile(r"^(?!-)[\w-]{1,63}(?<!-)$")

WHITESPACE_PATTERN = re.compile(r"\s")


@dataclass(frozen=True)
class Link:
    """A markdown link found in a document.

    Attributes:
        text: Display text between the brackets
        url: Raw target between the parentheses (unresolved)
        offset: Character offset of the link in the source text
    """

    text: str
    url: str
    offset: int


class LinkKind(str, Enum):
    EMPTY = "empty"
    EXTERNAL = "external"
    REFERENCE = "reference"
    ANCHOR = "anchor"
    MAIL = "mail"
    RELATIVE = "relative"


def extract_links(content: str) -> list[Link]:
    """Find every [text](target) construct in document order."""
    return [Link(m.group(1), m.group(2), m.start()) for m in LINK_PATTERN.finditer(content)]


def classify_link(url: str) -> LinkKind:
    """Classify a link target into exactly one LinkKind."""
    if not url.strip():
        return LinkKind.EMPTY
    if url.startswith(("http://", "https://")):
        return LinkKind.EXTERNAL
    if url.startswith(REFERENCES_PREFIX):
        return LinkKind.REFERENCE
    if url.startswith("#"):
        return LinkKind.ANCHOR
    if url.startswith("mailto:"):
        return LinkKind.MAIL
    return LinkKind.RELATIVE


def strip_fragment(url: str) -> str:
    """Drop a trailing #fragment from a relative file target."""
    return url.split("#", 1)[0]


def is_valid_host(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        pass
    labels = host[:-1].split(".") if host.endswith(".") else host.split(".")
    # A numeric final label makes the host an IPv4 address, which failed to parse above
    if labels[-1].isdigit():
        return False
    return all(HOST_LABEL_PATTERN.match(label) for label in labels)


def is_valid_url(url: str) -> bool:
    """Strict syntax check for an absolute http(s) URL.

    The authority must be free of whitespace, carry a valid host name or IP
    literal, and any port must be numeric and in range. Path, query and
    fragment characters are not restricted beyond control characters.
    """
    url = url.strip()
    if any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in url):
        return False

    try:
        parts = urlsplit(url)
        # Raises ValueError for a non-numeric or out-of-range port
        _ = parts.port
    except ValueError:
        return False

    if parts.scheme not in ("http", "https"):
        return False
    if not parts.netloc or WHITESPACE_PATTERN.search(parts.netloc):
        return False

    host = parts.hostname
    if not host:
        return False
    return is_valid_host(host)


def validate_links(content: str, skill_dir: Path, report: ValidationReport) -> list[str]:
    """Validate every link in a skill document.

    Args:
        content: SKILL.md text
        skill_dir: Skill directory used to resolve relative targets
        report: Validation report to add results to

    Returns:
        External URLs that passed syntax validation, in document order
    """
    external_urls: list[str] = []

    for link in extract_links(content):
        kind = classify_link(link.url)

        if kind is LinkKind.EMPTY:
            report.error(f'empty URL for link text "{link.text}"', SKILL_FILE, "links")
        elif kind is LinkKind.EXTERNAL:
            if is_valid_url(link.url):
                external_urls.append(link.url)
            else:
                report.error(f"malformed URL: {link.url}", SKILL_FILE, "links")
        elif kind is LinkKind.RELATIVE:
            # Advisory only: cross-skill targets are not always resolvable in isolation
            target = strip_fragment(link.url)
            if target and not (skill_dir / target.lstrip("/")).exists():
                report.warning(f"relative link target not found: {link.url}", SKILL_FILE, "links")
        # REFERENCE links are verified by the structure validator; ANCHOR and MAIL are always valid

    return external_urls


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Validate links in a skill's SKILL.md")
    parser.add_argument("skill_path", help="Path to the skill directory")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    args = parser.parse_args()

    skill_path = Path(args.skill_path)
    skill_md = skill_path / SKILL_FILE
    if not skill_md.is_file():
        print(f"Error: {skill_md} does not exist", file=sys.stderr)
        return 1

    report = ValidationReport()
    urls = validate_links(skill_md.read_text(encoding="utf-8"), skill_path, report)

    if args.json:
        print(report.to_json())
    else:
        for result in report.results:
            print(f"  {format_result(result)}")
        print(f"\n{len(urls)} external URL(s) collected")

    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
