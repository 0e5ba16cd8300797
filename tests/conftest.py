from __future__ import annotations

from pathlib import Path

import pytest

DEMO_TEMPLATE = (
    '{{##def.img:filename:<img src="filename">#}}\n'
    "Welcome to {{= it.placeHtml || 'here' }}!\n"
    "{{? it.names.length}}\n"
    "{{~ it.names :name}}\n"
    "- {{!name}} {{#def.img:user.jpg}}\n"
    "{{~}}\n"
    "{{??}}\n"
    "{{?}}"
)


@pytest.fixture
def demo_template() -> str:
    """Welcome page template using a parameterized define, a conditional and an iteration."""
    return DEMO_TEMPLATE


@pytest.fixture
def write_template(tmp_path: Path):
    """Writes a template file under tmp_path and returns its path."""
    def _write(text: str, name: str = "page.dot") -> Path:
        p = tmp_path / name
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
        return p
    return _write
