"""
路径工具

提供路径处理相关的工具函数。
"""

from pathlib import Path
from typing import Union


def ensure_directory(path: Union[str, Path]) -> Path:
    """确保目录存在

    Args:
        path: 目录路径

    Returns:
        Path: 目录路径
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def file_size(path: Path) -> int:
    """返回文件大小，文件不存在时返回 0"""
    try:
        return path.stat().st_size
    except OSError:
        return 0


def remove_quietly(path: Path) -> bool:
    """删除半成品文件，不存在时忽略

    Returns:
        bool: 是否确实删除了文件
    """
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False


def format_size(size_bytes: int) -> str:
    """格式化文件大小

    Args:
        size_bytes: 字节数

    Returns:
        str: 格式化的大小字符串
    """
    if size_bytes == 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    unit_index = 0
    size = float(size_bytes)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} {units[unit_index]}"
    return f"{size:.1f} {units[unit_index]}"
