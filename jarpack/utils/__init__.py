"""通用工具模块"""

from .logging import (
    configure_logging,
    get_stage_logger,
    set_log_file,
    set_log_level,
    StageLogger,
    LogStage,
    OutputLevel,
    scan_logger,
    pack_logger,
    normalize_logger,
    compress_logger,
    restore_logger,
)

from .paths import (
    ensure_directory,
    file_size,
    remove_quietly,
    format_size,
)

__all__ = [
    # 日志相关
    "configure_logging",
    "get_stage_logger",
    "set_log_file",
    "set_log_level",
    "StageLogger",
    "LogStage",
    "OutputLevel",
    "scan_logger",
    "pack_logger",
    "normalize_logger",
    "compress_logger",
    "restore_logger",

    # 路径相关
    "ensure_directory",
    "file_size",
    "remove_quietly",
    "format_size",
]
