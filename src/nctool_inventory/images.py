# src/nctool_inventory/images.py
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image


_REMOTE_PREFIXES = ("http://", "https://", "data:")


def resolve_tool_image(image_ref: str, base_dir: Optional[Path] = None) -> Optional[Path]:
    """
    metadata.image をローカルファイルに解決する。
    URL / 空 / 見つからない場合は None。相対パスは base_dir 基準。
    """
    if not image_ref or image_ref.lower().startswith(_REMOTE_PREFIXES):
        return None
    p = Path(image_ref.replace("\\", "/")).expanduser()
    if not p.is_absolute() and base_dir is not None:
        p = Path(base_dir) / p
    p = p.resolve()
    return p if p.is_file() else None


def make_thumbnail_png(src_img: Path, *, max_px: int = 160) -> Tuple[Optional[Path], Optional[str]]:
    """
    画像を縮小して OS テンポラリに PNG 保存する。呼び出し側で削除すること。
    戻り: (temp_png_path, error_message)
    """
    try:
        with Image.open(src_img) as im:
            im = im.convert("RGBA")
            im.thumbnail((max_px, max_px), Image.Resampling.LANCZOS)

            fd, tmp_name = tempfile.mkstemp(prefix="nctool_", suffix=".png")
            os.close(fd)  # Windows: 開いたままだと保存できない

            tmp_path = Path(tmp_name)
            im.save(tmp_path, format="PNG", optimize=True)
        return tmp_path, None

    except (OSError, ValueError) as e:
        return None, f"Image resize failed: {src_img} ({e})"
