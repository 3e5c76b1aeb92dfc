"""处理服务模块

提供归档扫描、Pack200 转换管道和批量运行的核心功能。
"""

from .errors import (
    JarpackError,
    ConfigurationError,
    ScanError,
    TaskError,
    PackError,
    BackupError,
    NormalizeError,
    CompressError,
    BatchFailure,
)
from .collector import PatternMatcher, ArchiveCandidate, DEFAULT_EXCLUDES, match_pattern, scan_archives
from .codec import (
    ArchiveCodec,
    CodecError,
    CodecFactory,
    CodecUnavailableError,
    Pack200ToolCodec,
)
from .compressor import (
    StreamCompressor,
    CompressorFactory,
    CompressionError,
    GzipCompressor,
)
from .task import ArchiveTask, TaskState, derive_task
from .task_context import TaskContext
from .pipeline import TransformPipeline, TaskResult
from .runner import BatchRunner, RunResult

__all__ = [
    # 错误
    "JarpackError",
    "ConfigurationError",
    "ScanError",
    "TaskError",
    "PackError",
    "BackupError",
    "NormalizeError",
    "CompressError",
    "BatchFailure",

    # 扫描
    "PatternMatcher",
    "ArchiveCandidate",
    "DEFAULT_EXCLUDES",
    "match_pattern",
    "scan_archives",

    # 编解码
    "ArchiveCodec",
    "CodecError",
    "CodecFactory",
    "CodecUnavailableError",
    "Pack200ToolCodec",

    # 压缩
    "StreamCompressor",
    "CompressorFactory",
    "CompressionError",
    "GzipCompressor",

    # 任务与管道
    "ArchiveTask",
    "TaskState",
    "derive_task",
    "TaskContext",
    "TransformPipeline",
    "TaskResult",
    "BatchRunner",
    "RunResult",
]
