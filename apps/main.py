from __future__ import annotations

import sys
from pathlib import Path

# src を import path に追加（未インストールのまま実行する場合）
sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from nctool_inventory.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
