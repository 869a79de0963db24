"""Shared fixtures for skill validation tests."""

import json
from collections.abc import Callable
from pathlib import Path

import pytest

VALID_METADATA = {
    "version": "1.0.0",
    "organization": "Apideck",
    "references": ["https://developers.apideck.com"],
}


def skill_document(
    name: str = "apideck-crm",
    always_apply: str = "false",
    body: str = "# CRM\n\nUse the CRM API to manage contacts.\n",
    omit: tuple[str, ...] = (),
) -> str:
    """Build a SKILL.md with the four required frontmatter fields."""
    fields = {
        "name": name,
        "description": '"Manage CRM contacts and leads"',
        "license": "MIT",
        "alwaysApply": always_apply,
    }
    header = "".join(f"{key}: {value}\n" for key, value in fields.items() if key not in omit)
    return f"---\n{header}---\n{body}"


MakeSkill = Callable[..., Path]


@pytest.fixture
def skills_dir(tmp_path: Path) -> Path:
    path = tmp_path / "skills"
    path.mkdir()
    return path


@pytest.fixture
def make_skill(skills_dir: Path) -> MakeSkill:
    """Factory creating a skill directory under skills_dir.

    Pass document=None to leave SKILL.md out, metadata=None to leave
    metadata.json out, and files={relative_path: text} for support files.
    """

    def _make(
        name: str = "apideck-crm",
        document: str | None = "",
        metadata: dict | str | None = "",
        files: dict[str, str] | None = None,
    ) -> Path:
        skill_path = skills_dir / name
        skill_path.mkdir(parents=True, exist_ok=True)

        if document == "":
            document = skill_document(name=name)
        if document is not None:
            (skill_path / "SKILL.md").write_text(document, encoding="utf-8")

        if metadata == "":
            metadata = VALID_METADATA
        if isinstance(metadata, dict):
            (skill_path / "metadata.json").write_text(json.dumps(metadata), encoding="utf-8")
        elif isinstance(metadata, str):
            (skill_path / "metadata.json").write_text(metadata, encoding="utf-8")

        for rel_path, text in (files or {}).items():
            target = skill_path / rel_path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")

        return skill_path

    return _make
