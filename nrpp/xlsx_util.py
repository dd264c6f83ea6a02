import zipfile
from pathlib import Path
from typing import Dict, List
from xml.sax.saxutils import escape, quoteattr

Grid = List[List[str]]

MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PKG_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
XML_HEAD = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'


def col_letter(idx: int) -> str:
    letters = []
    while idx:
        idx, rem = divmod(idx - 1, 26)
        letters.append(chr(ord("A") + rem))
    return "".join(reversed(letters))


def render_sheet(data: Grid) -> bytes:
    rows_xml = []
    for r, row in enumerate(data, start=1):
        cells_xml = []
        for c, value in enumerate(row, start=1):
            if value == "":
                continue
            ref = f"{col_letter(c)}{r}"
            # xml:space 保留前后空格（栈/输入串可能以空格开头）
            cells_xml.append(
                f'<c r="{ref}" t="inlineStr"><is><t xml:space="preserve">{escape(value)}</t></is></c>'
            )
        rows_xml.append(f'<row r="{r}">{"".join(cells_xml)}</row>')
    return f'{XML_HEAD}<worksheet xmlns="{MAIN_NS}"><sheetData>{"".join(rows_xml)}</sheetData></worksheet>'.encode(
        "utf-8"
    )


def export_workbook(path: Path, sheets: Dict[str, Grid]) -> None:
    """
    Export one or more 2D string grids to an .xlsx workbook without third-party deps.
    Each dict entry becomes a sheet, in insertion order.
    """
    if not sheets:
        raise ValueError("workbook needs at least one sheet")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    names = list(sheets)
    sheet_entries = "".join(
        f'<sheet name={quoteattr(name[:31])} sheetId="{i}" r:id="rId{i}"/>'
        for i, name in enumerate(names, start=1)
    )
    workbook_xml = (
        f'{XML_HEAD}<workbook xmlns="{MAIN_NS}" xmlns:r="{REL_NS}">'
        f"<sheets>{sheet_entries}</sheets></workbook>"
    ).encode("utf-8")

    rels_root = (
        f'{XML_HEAD}<Relationships xmlns="{PKG_REL_NS}">'
        f'<Relationship Id="rId1" Type="{REL_NS}/officeDocument" Target="xl/workbook.xml"/>'
        "</Relationships>"
    ).encode("utf-8")

    sheet_rels = "".join(
        f'<Relationship Id="rId{i}" Type="{REL_NS}/worksheet" Target="worksheets/sheet{i}.xml"/>'
        for i in range(1, len(names) + 1)
    )
    styles_id = len(names) + 1
    rels_workbook = (
        f'{XML_HEAD}<Relationships xmlns="{PKG_REL_NS}">{sheet_rels}'
        f'<Relationship Id="rId{styles_id}" Type="{REL_NS}/styles" Target="styles.xml"/>'
        "</Relationships>"
    ).encode("utf-8")

    styles_xml = f'{XML_HEAD}<styleSheet xmlns="{MAIN_NS}"/>'.encode("utf-8")

    sheet_overrides = "".join(
        f'<Override PartName="/xl/worksheets/sheet{i}.xml" '
        'ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.worksheet+xml"/>'
        for i in range(1, len(names) + 1)
    )
    content_types = (
        f'{XML_HEAD}<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
        '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
        '<Default Extension="xml" ContentType="application/xml"/>'
        '<Override PartName="/xl/workbook.xml" ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet.main+xml"/>'
        f"{sheet_overrides}"
        '<Override PartName="/xl/styles.xml" ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.styles+xml"/>'
        "</Types>"
    ).encode("utf-8")

    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("[Content_Types].xml", content_types)
        zf.writestr("_rels/.rels", rels_root)
        zf.writestr("xl/workbook.xml", workbook_xml)
        zf.writestr("xl/_rels/workbook.xml.rels", rels_workbook)
        for i, name in enumerate(names, start=1):
            zf.writestr(f"xl/worksheets/sheet{i}.xml", render_sheet(sheets[name]))
        zf.writestr("xl/styles.xml", styles_xml)
