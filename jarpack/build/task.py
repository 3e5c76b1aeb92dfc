"""
归档任务

一个任务对应一个归档：由候选文件相对路径推导出名称，再由名称推导出
原始归档、packed 文件、压缩文件和备份标记四个绝对路径。
"""

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

PACK_SUFFIX = ".pack"
PACK_GZ_SUFFIX = ".pack.gz"
BACKUP_INFIX = ".original"
DEFAULT_ARCHIVE_SUFFIX = ".jar"

# .jar / .war / .ear 等 *.?ar 扩展名
_ARCHIVE_SUFFIX_RE = re.compile(r"\.[^./]ar$", re.IGNORECASE)


class TaskState(str, Enum):
    """任务状态"""
    START = "start"
    PACKED = "packed"
    NORMALIZED_DONE = "normalized"
    COMPRESSED_DONE = "compressed"
    COMPRESS_SKIPPED = "compress_skipped"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ArchiveTask:
    """一个归档的处理单元"""
    name: str  # 相对名称，正斜杠分隔，不含任何扩展名
    archive_suffix: str
    source_root: Path
    output_root: Path

    @property
    def archive_path(self) -> Path:
        return self.source_root / f"{self.name}{self.archive_suffix}"

    @property
    def packed_path(self) -> Path:
        return self.output_root / f"{self.name}{PACK_SUFFIX}"

    @property
    def compressed_path(self) -> Path:
        return self.output_root / f"{self.name}{PACK_GZ_SUFFIX}"

    @property
    def backup_path(self) -> Path:
        return self.source_root / f"{self.name}{BACKUP_INFIX}{self.archive_suffix}"

    @property
    def display_name(self) -> str:
        return f"{self.name}{self.archive_suffix}"

    def targets(self) -> tuple:
        """任务涉及的全部路径（用于冲突检测）"""
        return (self.archive_path, self.packed_path, self.compressed_path, self.backup_path)


def strip_packed_suffix(relative_path: str) -> Optional[str]:
    """去掉 .pack / .pack.gz 后缀；不是 packed 形式时返回 None"""
    if relative_path.endswith(PACK_GZ_SUFFIX):
        return relative_path[:-len(PACK_GZ_SUFFIX)]
    if relative_path.endswith(PACK_SUFFIX):
        return relative_path[:-len(PACK_SUFFIX)]
    return None


def split_archive_suffix(relative_path: str) -> tuple:
    """拆分出归档扩展名，返回 (名称, 扩展名)"""
    match = _ARCHIVE_SUFFIX_RE.search(relative_path)
    if match:
        return relative_path[:match.start()], match.group(0)

    base = relative_path.rsplit('/', 1)[-1]
    if '.' in base.lstrip('.'):
        index = relative_path.rfind('.')
        return relative_path[:index], relative_path[index:]
    return relative_path, ""


def _sibling_archive_suffix(source_root: Path, name: str) -> str:
    """为 packed 形式的候选查找同名归档的扩展名"""
    stem_path = source_root / name
    parent = stem_path.parent
    if parent.is_dir():
        for sibling in sorted(parent.glob(f"{glob_escape(stem_path.name)}.?ar")):
            if sibling.is_file():
                return sibling.name[len(stem_path.name):]
    return DEFAULT_ARCHIVE_SUFFIX


def is_backup_marker(relative_path: str) -> bool:
    """是否为备份标记文件（``x.original.jar``）"""
    name, suffix = split_archive_suffix(relative_path)
    return bool(suffix) and name.endswith(BACKUP_INFIX)


def glob_escape(text: str) -> str:
    return re.sub(r"([*?\[])", r"[\1]", text)


def derive_relative_name(candidate: Path, source_root: Path) -> str:
    """候选文件相对于归档目录的路径（正斜杠分隔）"""
    candidate = Path(candidate)
    if not candidate.is_absolute():
        candidate = source_root / candidate
    try:
        return candidate.relative_to(source_root).as_posix()
    except ValueError:
        raise ValueError(f"文件不在归档目录下: {candidate}") from None


def derive_task(candidate: Path, source_root: Path, output_root: Optional[Path] = None) -> ArchiveTask:
    """由候选文件推导归档任务

    ``a/b/c.jar``、``a/b/c.pack``、``a/b/c.pack.gz`` 都推导出名称 ``a/b/c``，
    因此对已处理过的输出重复运行时命名保持一致。

    Args:
        candidate: 候选文件路径（绝对路径或相对于 source_root）
        source_root: 已解析的归档目录
        output_root: 已解析的输出目录，默认与归档目录相同

    Returns:
        ArchiveTask: 归档任务
    """
    source_root = Path(source_root)
    output_root = Path(output_root) if output_root is not None else source_root
    relative_path = derive_relative_name(candidate, source_root)

    unpacked = strip_packed_suffix(relative_path)
    if unpacked is not None:
        # 版本号中的点不是扩展名：lib-1.0.pack.gz 的名称是 lib-1.0
        match = _ARCHIVE_SUFFIX_RE.search(unpacked)
        if match:
            name, suffix = unpacked[:match.start()], match.group(0)
        else:
            name = unpacked
            suffix = _sibling_archive_suffix(source_root, name)
    else:
        name, suffix = split_archive_suffix(relative_path)

    return ArchiveTask(
        name=name,
        archive_suffix=suffix,
        source_root=source_root,
        output_root=output_root,
    )
