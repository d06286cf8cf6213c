"""Offline fallback used when EDINET_API_KEY is not set.

Every network-fetching mode reads fixed data from ``mock_data/`` instead:

- ``documents.json``: a document list in the EDINET v2 shape
- ``xbrl/<docID>.xbrl``: the XBRL instance packed into that filing's archive
- ``prices.csv``: one daily price series, served for every code
"""

from __future__ import annotations

import io
import os
import zipfile
from pathlib import Path

from logging_utils import get_logger
from utils.edinet_api import FilingReference, parse_document_list

logger = get_logger(__name__)

MOCK_DATA_DIR = Path(
    os.getenv("MOCK_DATA_DIR") or Path(__file__).resolve().parents[1] / "mock_data"
)


def load_mock_document_list(mock_dir: Path | None = None) -> list[FilingReference]:
    path = (mock_dir or MOCK_DATA_DIR) / "documents.json"
    logger.info("Mock mode | reading document list from %s", path)
    return parse_document_list(path.read_bytes())


def build_archive(members: dict[str, bytes | str]) -> bytes:
    """Pack `members` (archive path -> content) into an in-memory zip."""

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, content in members.items():
            zf.writestr(name, content)
    return buf.getvalue()


def load_mock_archive(doc_id: str, mock_dir: Path | None = None) -> bytes:
    """Build the archive EDINET would return for `doc_id`.

    A filing without a mock XBRL file gets an archive holding only a
    placeholder PDF, which the extractor reports as insufficient.
    """

    xbrl_path = (mock_dir or MOCK_DATA_DIR) / "xbrl" / f"{doc_id}.xbrl"
    if not xbrl_path.exists():
        return build_archive({f"{doc_id}/PDF/{doc_id}.pdf": b"%PDF-1.4\n"})

    return build_archive(
        {f"XBRL/PublicDoc/{xbrl_path.name}": xbrl_path.read_bytes()}
    )


def load_mock_price_csv(mock_dir: Path | None = None) -> str:
    path = (mock_dir or MOCK_DATA_DIR) / "prices.csv"
    return path.read_text(encoding="utf-8")
