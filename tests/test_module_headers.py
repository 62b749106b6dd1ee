#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Every snarlkit module carries the project header and license footer.
"""

from pathlib import Path

import pytest

import snarlkit

PACKAGE_DIR = Path(snarlkit.__file__).parent
MODULES = sorted(
    path for path in PACKAGE_DIR.rglob("*.py")
    if path.name != "__init__.py"
)


@pytest.mark.parametrize("path", MODULES, ids=lambda p: str(p.relative_to(PACKAGE_DIR)))
def test_module_header_and_footer(path):
    lines = path.read_text().splitlines()
    assert lines[0] == "#!/usr/bin/env python3"
    assert "Author: SnarlKit Development Team" in lines[:30]
    assert any(line.startswith("License: Dual License (Academic/Commercial)") for line in lines[:30])
    assert lines[-2:] == ["# SnarlKit v0.1.0", "# Any usage is subject to this software's license."]


def test_modules_found():
    names = {path.name for path in MODULES}
    assert {"support_calculators.py", "vcf_interfaces.py", "probability.py", "sequence_utils.py"} <= names
