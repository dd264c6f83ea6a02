import zipfile

import pytest

from nrpp.xlsx_util import col_letter, export_workbook


@pytest.mark.parametrize("idx, letters", [(1, "A"), (26, "Z"), (27, "AA"), (52, "AZ"), (703, "AAA")])
def test_col_letter(idx, letters):
    assert col_letter(idx) == letters


def test_one_sheet_per_grid(tmp_path):
    path = tmp_path / "book.xlsx"
    export_workbook(path, {"First": [["a", "", "<b>"]], "Second": [[" x"]]})
    with zipfile.ZipFile(path) as zf:
        first = zf.read("xl/worksheets/sheet1.xml").decode("utf-8")
        second = zf.read("xl/worksheets/sheet2.xml").decode("utf-8")
        rels = zf.read("xl/_rels/workbook.xml.rels").decode("utf-8")
    assert '<c r="A1"' in first
    assert 'r="B1"' not in first
    assert "&lt;b&gt;" in first
    assert '<t xml:space="preserve"> x</t>' in second
    assert "worksheets/sheet2.xml" in rels


def test_empty_workbook_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        export_workbook(tmp_path / "empty.xlsx", {})
