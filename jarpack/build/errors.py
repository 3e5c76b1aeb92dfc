"""
错误类型

运行级错误（配置、扫描、批量失败）与任务级错误（打包、备份、规范化、压缩）。
任务级错误都带有出错文件路径和底层诊断信息。
"""

from pathlib import Path
from typing import Optional


class JarpackError(Exception):
    """jarpack 错误基类"""
    pass


class ConfigurationError(JarpackError):
    """运行配置无效（归档目录不存在、外部工具缺失等）"""
    pass


class ScanError(JarpackError):
    """包含/排除模式解析失败"""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class TaskError(JarpackError):
    """单个归档任务的错误"""

    stage = "TASK"

    def __init__(self, path: Path, message: str, cause: Optional[BaseException] = None):
        self.path = Path(path)
        self.message = message
        self.cause = cause
        super().__init__(self._compose())

    def _compose(self) -> str:
        text = f"{self.message}: {self.path}"
        if self.cause is not None:
            text += f" ({self.cause})"
        return text


class PackError(TaskError):
    """pack 阶段失败，原始归档未被改动"""
    stage = "PACK"


class BackupError(TaskError):
    """备份标记创建或恢复失败"""
    stage = "BACKUP"


class NormalizeError(TaskError):
    """unpack 规范化失败，备份标记保留"""
    stage = "NORMALIZE"


class CompressError(TaskError):
    """gzip 压缩或中间文件清理失败"""
    stage = "COMPRESS"


class BatchFailure(JarpackError):
    """批量运行中至少一个任务失败"""

    def __init__(self, first_error: TaskError, failed: int, succeeded: int):
        self.first_error = first_error
        self.failed = failed
        self.succeeded = succeeded
        super().__init__(
            f"{failed} 个归档处理失败，{succeeded} 个成功；首个错误: {first_error}"
        )
