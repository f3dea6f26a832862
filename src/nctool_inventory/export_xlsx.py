# src/nctool_inventory/export_xlsx.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.drawing.image import Image as XLImage
from openpyxl.utils import get_column_letter

from .images import make_thumbnail_png, resolve_tool_image
from .model import ToolRecord
from .query import partition_tools, sort_tools

logger = logging.getLogger(__name__)


COLUMNS = [
    # identity
    "T#",
    "id",
    "name",
    "type",
    # geometry
    "diameter_mm",
    "tlo_mm",
    # metadata
    "sku",
    "notes",
    "image",
]


def _autosize_columns(ws, max_width: int = 60) -> None:
    for col in range(1, ws.max_column + 1):
        letter = get_column_letter(col)
        max_len = 10
        for r in range(1, min(ws.max_row, 200) + 1):
            v = ws.cell(row=r, column=col).value
            if v is None:
                continue
            max_len = max(max_len, len(str(v)))
        ws.column_dimensions[letter].width = min(max_width, max(10, max_len + 2))


def _row(tool: ToolRecord) -> list:
    return [
        f"T{tool.tool_number}" if tool.tool_number is not None else "",
        tool.id,
        tool.name,
        tool.type_label,
        float(tool.diameter or 0),
        float(tool.offsets.tlo or 0),
        tool.metadata.sku,
        tool.metadata.notes,
        tool.metadata.image,
    ]


def _write_sheet(
    ws,
    tools: Sequence[ToolRecord],
    thumbs: dict,
    row_height: int,
) -> int:
    ws.append(COLUMNS)
    for r, tool in enumerate(tools, start=2):
        ws.append(_row(tool))
        ws.cell(row=r, column=COLUMNS.index("diameter_mm") + 1).number_format = "0.000"
        ws.cell(row=r, column=COLUMNS.index("tlo_mm") + 1).number_format = "0.000"

    _autosize_columns(ws)

    img_col = COLUMNS.index("image") + 1
    img_count = 0
    for r, tool in enumerate(tools, start=2):
        p = thumbs.get(tool.id)
        if not p:
            continue
        ws.add_image(XLImage(str(p)), ws.cell(row=r, column=img_col).coordinate)
        ws.row_dimensions[r].height = row_height
        img_count += 1

    if img_count:
        ws.column_dimensions[get_column_letter(img_col)].width = 18
    return img_count


def write_xlsx(
    records: Sequence[ToolRecord],
    out_xlsx: Path,
    embed_images: bool = False,
    max_px: int = 160,
    image_base: Optional[Path] = None,
    row_height: int = 90,
) -> Tuple[int, int]:
    """
    records -> XLSX（magazine / library / meta / errors シート）
    - magazine: T# 昇順、library: 名前順
    - embed_images: metadata.image がローカルファイルなら縮小して埋め込む
    Returns: (written_rows, embedded_images)
    """
    out_xlsx = Path(out_xlsx)
    out_xlsx.parent.mkdir(parents=True, exist_ok=True)

    magazine, library = partition_tools(sort_tools(records, "toolNumber", "asc"))
    library = sort_tools(library, "name", "asc")

    errors: List[tuple] = []
    thumbs: dict = {}
    temp_files: List[Path] = []

    if embed_images:
        for tool in magazine + library:
            if not tool.metadata.image:
                continue
            src = resolve_tool_image(tool.metadata.image, image_base)
            if src is None:
                errors.append((tool.id, tool.name, f"Image not found: {tool.metadata.image}"))
                continue
            tmp_png, err = make_thumbnail_png(src, max_px=max_px)
            if tmp_png:
                thumbs[tool.id] = tmp_png
                temp_files.append(tmp_png)
            if err:
                errors.append((tool.id, tool.name, err))

    for _, name, msg in errors:
        logger.warning("%s: %s", name, msg)

    wb = Workbook()
    ws_mag = wb.active
    ws_mag.title = "magazine"
    ws_lib = wb.create_sheet("library")

    try:
        img_count = _write_sheet(ws_mag, magazine, thumbs, row_height)
        img_count += _write_sheet(ws_lib, library, thumbs, row_height)

        ws_meta = wb.create_sheet("meta")
        ws_meta.append(["tools", len(records)])
        ws_meta.append(["in_magazine", len(magazine)])
        ws_meta.append(["library", len(library)])
        ws_meta.append(["embedded_images", img_count])

        ws_err = wb.create_sheet("errors")
        ws_err.append(["id", "name", "message"])
        for row in errors:
            ws_err.append(list(row))

        wb.save(out_xlsx)
    finally:
        for p in temp_files:
            try:
                p.unlink()
            except OSError:
                pass

    logger.info("wrote %d tool(s) to %s", len(records), out_xlsx)
    return len(magazine) + len(library), img_count
