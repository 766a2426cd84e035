"""
Shared fixtures for the scholarship service tests
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

from scholarship.models import Document
from scholarship.utils.validators import mime_type_for


@pytest.fixture
def make_document(tmp_path: Path) -> Callable[..., Document]:
    """Write content to a transient file and describe it as a Document"""

    def _make(filename: str, content: bytes = b"sample", mime_type: Optional[str] = None) -> Document:
        path = tmp_path / filename
        path.write_bytes(content)
        return Document(
            path=path,
            mime_type=mime_type or mime_type_for(filename) or "application/octet-stream",
            size_bytes=len(content),
            filename=filename,
        )

    return _make


@pytest.fixture
def rule_rows() -> List[Dict[str, Any]]:
    return [
        {"_id": 1, "rule_key": "max_monthly_income", "rule_value": "30000", "description": "Combined limit"},
        {"_id": 2, "rule_key": "max_gwa", "rule_value": "3.0", "description": "Maximum GWA"},
    ]
