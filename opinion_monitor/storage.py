"""JSON file helpers shared by the file-backed provider and cache backend."""

from __future__ import annotations

import json
import time
import uuid
from pathlib import Path
from typing import Any, Optional

from .settings import DATA_ROOT


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def read_json(path: Path, default=None):
    """Load JSON from ``path``; a missing file yields ``default``.

    Decode and I/O errors propagate so callers can classify them.
    """
    if not path.exists():
        return default
    with path.open("r", encoding="utf-8") as fp:
        return json.load(fp)


def write_json(path: Path, data: Any) -> None:
    """Persist JSON with unified formatting (UTF-8, indent=2, trailing newline)."""
    _ensure_parent(path)
    last_error: Optional[PermissionError] = None
    # 原子替换；Windows 上目标被占用时可能短暂拒绝，需要多次重试。
    for attempt in range(5):
        tmp_path = path.with_name(f"{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as fp:
                json.dump(data, fp, ensure_ascii=False, indent=2)
                fp.write("\n")
            tmp_path.replace(path)
            return
        except PermissionError as exc:
            last_error = exc
            time.sleep(0.05 * (2**attempt))
        finally:
            try:
                tmp_path.unlink(missing_ok=True)
            except PermissionError:
                pass
    if last_error:
        raise last_error


def to_data_relative(path: Path) -> str:
    """路径统一保存为相对 DATA_ROOT 的形式。"""
    try:
        return path.relative_to(DATA_ROOT).as_posix()
    except ValueError:
        return path.as_posix()


__all__ = ["read_json", "write_json", "to_data_relative"]
