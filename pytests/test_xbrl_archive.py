from __future__ import annotations

import pytest

from utils.xbrl_extractor import (
    ArchiveError,
    InsufficientDataError,
    extract_figures_from_archive,
    extract_figures_from_file,
    is_candidate_member,
)
from pytests.common import damage_member_data, make_archive, xbrl_document, xbrl_fact

_SALES = "NetSalesSummaryOfBusinessResults"
_TOTAL_ASSETS = "TotalAssetsSummaryOfBusinessResults"


@pytest.mark.parametrize(
    "name, expected",
    [
        ("XBRL/PublicDoc/jpcrp030000-asr-001_E00001-000_2025-03-31_01_2025-06-20.xbrl", True),
        ("XBRL/AuditDoc/jpaud-aar-cn-001_E00001-000_2025-03-31_01_2025-06-20.xbrl", False),
        ("XBRL/PublicDoc/0101010_honbun_jpcrp030000-asr-001.htm", False),
        ("XBRL/PublicDoc/jpcrp030000-asr-001_E00001-000.xsd", False),
    ],
)
def test_is_candidate_member(name, expected):
    assert is_candidate_member(name) is expected


def test_audit_report_members_are_skipped():
    archive = make_archive(
        {
            # Sorted first; would win if it were read.
            "XBRL/AuditDoc/jpaud-aar-cn-001.xbrl": xbrl_document(xbrl_fact(_SALES, 1)),
            "XBRL/PublicDoc/jpcrp030000-asr-001.xbrl": xbrl_document(xbrl_fact(_SALES, 500)),
        }
    )
    assert extract_figures_from_archive(archive).net_sales == 500


def test_first_resolution_wins_across_files():
    archive = make_archive(
        {
            "XBRL/PublicDoc/a_main.xbrl": xbrl_document(xbrl_fact(_SALES, 100)),
            "XBRL/PublicDoc/b_second.xbrl": xbrl_document(
                xbrl_fact(_SALES, 999),
                xbrl_fact(_TOTAL_ASSETS, 2000, "CurrentYearInstant"),
            ),
        }
    )
    figures = extract_figures_from_archive(archive)
    assert figures.net_sales == 100
    # Fields missing from the first file are still picked up from later ones.
    assert figures.total_assets == 2000


def test_archive_without_xbrl_is_insufficient():
    archive = make_archive({"S100TEST/PDF/S100TEST.pdf": b"%PDF-1.4\n"})
    with pytest.raises(InsufficientDataError):
        extract_figures_from_archive(archive)


def test_corrupt_archive_raises_archive_error():
    with pytest.raises(ArchiveError):
        extract_figures_from_archive(b"this is not a zip file")


def test_damaged_member_data_raises_archive_error():
    member = "XBRL/PublicDoc/main.xbrl"
    archive = make_archive({member: xbrl_document(xbrl_fact(_SALES, 42))})

    with pytest.raises(ArchiveError, match="main.xbrl"):
        extract_figures_from_archive(damage_member_data(archive, member))


def test_extract_from_local_xbrl_and_zip(tmp_path):
    doc = xbrl_document(xbrl_fact(_SALES, 42))

    xbrl_path = tmp_path / "report.xbrl"
    xbrl_path.write_text(doc, encoding="utf-8")
    assert extract_figures_from_file(xbrl_path).net_sales == 42

    zip_path = tmp_path / "S100TEST.zip"
    zip_path.write_bytes(make_archive({"XBRL/PublicDoc/report.xbrl": doc}))
    assert extract_figures_from_file(zip_path).net_sales == 42
