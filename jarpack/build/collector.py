"""
归档文件收集器

按 Ant 风格的包含/排除模式扫描归档目录，返回有序的候选文件列表。
模式以 / 分隔，`**` 匹配零个或多个目录，`*` 与 `?` 只在单个路径段内匹配。
"""

import fnmatch
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from ..config.schema import DEFAULT_INCLUDES
from ..utils.logging import scan_logger
from .errors import ScanError


# 版本控制与编辑器临时文件的默认排除规则
DEFAULT_EXCLUDES = [
    "**/*~",
    "**/#*#",
    "**/.#*",
    "**/%*%",
    "**/._*",
    "**/CVS",
    "**/CVS/**",
    "**/.cvsignore",
    "**/SCCS",
    "**/SCCS/**",
    "**/vssver.scc",
    "**/.svn",
    "**/.svn/**",
    "**/.DS_Store",
    "**/.git",
    "**/.git/**",
    "**/.gitattributes",
    "**/.gitignore",
    "**/.gitmodules",
    "**/.hg",
    "**/.hg/**",
    "**/.hgignore",
    "**/.bzr",
    "**/.bzr/**",
]


@dataclass
class ArchiveCandidate:
    """扫描到的候选文件"""
    path: Path  # 绝对路径
    relative_path: str  # 相对于扫描根目录，使用正斜杠
    size: int

    def to_dict(self) -> Dict[str, object]:
        return {
            'path': self.relative_path,
            'size': self.size,
        }


def normalize_pattern(pattern: str) -> str:
    """标准化模式：统一分隔符，以 / 结尾的模式匹配目录下所有内容"""
    pattern = pattern.strip().replace('\\', '/')
    if pattern.endswith('/'):
        pattern += '**'
    while pattern.startswith('./'):
        pattern = pattern[2:]
    return pattern.lstrip('/')


@lru_cache(maxsize=256)
def _split(pattern: str) -> Tuple[str, ...]:
    return tuple(part for part in normalize_pattern(pattern).split('/') if part)


def _match_parts(pattern_parts: Sequence[str], path_parts: Sequence[str]) -> bool:
    if not pattern_parts:
        return not path_parts

    head = pattern_parts[0]
    if head == '**':
        # ** 可以吞掉零个或多个路径段
        rest = pattern_parts[1:]
        for i in range(len(path_parts) + 1):
            if _match_parts(rest, path_parts[i:]):
                return True
        return False

    if not path_parts:
        return False

    if not fnmatch.fnmatchcase(path_parts[0], head):
        return False
    return _match_parts(pattern_parts[1:], path_parts[1:])


def match_pattern(pattern: str, relative_path: str) -> bool:
    """判断相对路径是否匹配 Ant 风格模式

    Args:
        pattern: 模式，例如 ``**/*.jar``
        relative_path: 使用正斜杠的相对路径

    Returns:
        bool: 是否匹配
    """
    path_parts = [part for part in relative_path.replace('\\', '/').split('/') if part]
    return _match_parts(_split(pattern), path_parts)


class PatternMatcher:
    """包含/排除模式匹配器

    负责扫描归档目录，应用包含与排除规则。
    """

    def __init__(
        self,
        includes: Optional[List[str]] = None,
        excludes: Optional[List[str]] = None,
        use_default_excludes: bool = True,
    ):
        self.includes = [normalize_pattern(p) for p in (includes or DEFAULT_INCLUDES)]
        self.excludes = [normalize_pattern(p) for p in (excludes or [])]
        if use_default_excludes:
            self.excludes.extend(DEFAULT_EXCLUDES)

    def is_included(self, relative_path: str) -> bool:
        return any(match_pattern(p, relative_path) for p in self.includes)

    def is_excluded(self, relative_path: str) -> bool:
        return any(match_pattern(p, relative_path) for p in self.excludes)

    def matches(self, relative_path: str) -> bool:
        """文件是否被包含且未被排除"""
        return self.is_included(relative_path) and not self.is_excluded(relative_path)

    def scan(self, root: Path) -> List[ArchiveCandidate]:
        """扫描根目录

        Args:
            root: 扫描根目录

        Returns:
            List[ArchiveCandidate]: 按相对路径排序的候选文件

        Raises:
            ScanError: 根目录不可读或遍历失败
        """
        root = Path(root)
        if not root.is_dir():
            raise ScanError(f"扫描目录不存在或不是目录: {root}", root)

        candidates: List[ArchiveCandidate] = []
        for file_path, relative_path in self._walk_directory(root):
            if not self.matches(relative_path):
                continue
            try:
                size = file_path.stat().st_size
            except OSError as e:
                raise ScanError(f"无法读取文件信息: {file_path} ({e})", file_path) from e
            candidates.append(ArchiveCandidate(
                path=file_path.absolute(),
                relative_path=relative_path,
                size=size,
            ))

        # 按相对路径排序，确保同一文件系统快照下顺序稳定
        candidates.sort(key=lambda c: c.relative_path)

        scan_logger.debug(
            f"扫描 {root}: 包含={self.includes} 排除={len(self.excludes)} 条规则，命中 {len(candidates)} 个文件"
        )
        return candidates

    def _walk_directory(self, root: Path) -> Iterator[Tuple[Path, str]]:
        """递归遍历目录，产出 (文件路径, 相对路径)"""

        def on_error(exc: OSError) -> None:
            raise ScanError(f"无法遍历目录: {exc.filename} ({exc.strerror})", Path(exc.filename or root)) from exc

        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
            dirnames.sort()
            current = Path(dirpath)
            for name in sorted(filenames):
                file_path = current / name
                relative_path = file_path.relative_to(root).as_posix()
                yield file_path, relative_path


def scan_archives(
    root: Path,
    includes: Optional[List[str]] = None,
    excludes: Optional[List[str]] = None,
    use_default_excludes: bool = True,
) -> List[ArchiveCandidate]:
    """便捷函数：扫描归档目录"""
    matcher = PatternMatcher(includes, excludes, use_default_excludes)
    return matcher.scan(root)
