"""
日志工具 - 统一输出门面

封装 Rich Console，为打包流程提供带时间戳、带阶段标记的统一输出接口。
错误信息写入 stderr，可选同时追加到日志文件。
"""

import atexit
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

from rich.console import Console
from rich.markup import escape


class OutputLevel:
    """输出级别常量"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


_LEVEL_ORDER = {
    OutputLevel.DEBUG: 0,
    OutputLevel.INFO: 1,
    OutputLevel.SUCCESS: 1,
    OutputLevel.WARNING: 2,
    OutputLevel.ERROR: 3,
}

_LEVEL_STYLES = {
    OutputLevel.DEBUG: "dim",
    OutputLevel.INFO: "default",
    OutputLevel.SUCCESS: "green",
    OutputLevel.WARNING: "yellow",
    OutputLevel.ERROR: "red bold",
}


class LogStage:
    """日志阶段标记"""
    INIT = "INIT"
    SCAN = "SCAN"
    PACK = "PACK"
    NORMALIZE = "NORMALIZE"
    COMPRESS = "COMPRESS"
    RESTORE = "RESTORE"
    DONE = "DONE"


class OutputFacade:
    """输出门面

    所有输出都经过这里：控制台彩色输出 + 可选日志文件。
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._file_handle = None  # type: Optional[Any]
        self._log_level = OutputLevel.INFO
        self._date_format = "%Y-%m-%d %H:%M:%S"
        self._time_format = "%H:%M:%S"
        # 不绑定具体的流对象，每次输出时使用当前的 sys.stdout / sys.stderr
        self._console = Console(
            color_system="auto",
            markup=True,
            emoji=False,
            highlight=False,
            log_time=False,
            log_path=False,
        )
        self._error_console = Console(stderr=True, markup=True, highlight=False)

    def _get_timestamp(self, include_date: bool = False) -> str:
        now = datetime.now()
        return now.strftime(self._date_format if include_date else self._time_format)

    def _should_output(self, level: str) -> bool:
        return _LEVEL_ORDER.get(level, 1) >= _LEVEL_ORDER.get(self._log_level, 1)

    def _format_message(self, message: str, level: str,
                        stage: Optional[str] = None, include_date: bool = False) -> str:
        timestamp = self._get_timestamp(include_date)
        if stage:
            return f"[{timestamp}] [{level}] [{stage}] {message}"
        return f"[{timestamp}] [{level}] {message}"

    def _write_to_file(self, message: str, level: str, stage: Optional[str] = None):
        if not self._file_handle:
            return
        try:
            self._file_handle.write(self._format_message(message, level, stage, include_date=True) + "\n")
            self._file_handle.flush()
        except OSError:
            pass  # 日志文件写入失败不影响主流程

    def _emit(self, message: str, level: str, stage: Optional[str] = None):
        if not self._should_output(level):
            return

        with self._lock:
            console = self._error_console if level == OutputLevel.ERROR else self._console
            timestamp = self._get_timestamp()
            # 消息中常含路径和方括号，避免被当作 Rich 标记解析
            text = escape(message)
            if stage:
                markup = f"[dim]{timestamp}[/dim] [bold]{level}[/bold] [cyan]{stage}[/cyan] {text}"
            else:
                markup = f"[dim]{timestamp}[/dim] [bold]{level}[/bold] {text}"
            console.print(markup, style=_LEVEL_STYLES.get(level, "default"))
            self._write_to_file(message, level, stage)

    def set_level(self, level: str):
        """设置输出级别"""
        with self._lock:
            if level in _LEVEL_ORDER:
                self._log_level = level

    def get_level(self) -> str:
        return self._log_level

    def set_log_file(self, file_path: Union[str, Path]):
        """设置日志文件（追加模式）"""
        with self._lock:
            self._close_file()
            log_path = Path(file_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = open(log_path, 'a', encoding='utf-8')

    def _close_file(self):
        if self._file_handle:
            try:
                self._file_handle.close()
            except OSError:
                pass
            self._file_handle = None

    def debug(self, message: str, stage: Optional[str] = None):
        self._emit(message, OutputLevel.DEBUG, stage)

    def info(self, message: str, stage: Optional[str] = None):
        self._emit(message, OutputLevel.INFO, stage)

    def success(self, message: str, stage: Optional[str] = None):
        self._emit(message, OutputLevel.SUCCESS, stage)

    def warning(self, message: str, stage: Optional[str] = None):
        self._emit(message, OutputLevel.WARNING, stage)

    def error(self, message: str, stage: Optional[str] = None):
        self._emit(message, OutputLevel.ERROR, stage)

    def close(self):
        """关闭输出门面"""
        with self._lock:
            self._close_file()


# 全局输出门面实例
_output_facade: Optional[OutputFacade] = None


def get_output_facade() -> OutputFacade:
    """获取全局输出门面实例"""
    global _output_facade
    if _output_facade is None:
        _output_facade = OutputFacade()
    return _output_facade


def debug(message: str, stage: Optional[str] = None):
    """调试信息输出"""
    get_output_facade().debug(message, stage)


def info(message: str, stage: Optional[str] = None):
    """普通信息输出"""
    get_output_facade().info(message, stage)


def success(message: str, stage: Optional[str] = None):
    """成功信息输出"""
    get_output_facade().success(message, stage)


def warning(message: str, stage: Optional[str] = None):
    """警告信息输出"""
    get_output_facade().warning(message, stage)


def error(message: str, stage: Optional[str] = None):
    """错误信息输出"""
    get_output_facade().error(message, stage)


def set_log_level(level: str):
    """设置全局日志级别"""
    get_output_facade().set_level(level)


def set_log_file(file_path: Union[str, Path]):
    """设置全局日志文件"""
    get_output_facade().set_log_file(file_path)


def close_logger():
    """关闭日志系统"""
    global _output_facade
    if _output_facade:
        _output_facade.close()
        _output_facade = None


class StageLogger:
    """绑定了阶段标记的日志器"""

    def __init__(self, stage: str):
        self.stage = stage

    def debug(self, message: str):
        debug(message, self.stage)

    def info(self, message: str):
        info(message, self.stage)

    def success(self, message: str):
        success(message, self.stage)

    def warning(self, message: str):
        warning(message, self.stage)

    def error(self, message: str):
        error(message, self.stage)


def get_stage_logger(stage: str) -> StageLogger:
    """获取阶段日志器"""
    return StageLogger(stage)


def configure_logging(level: str = OutputLevel.INFO, log_file: Optional[Union[str, Path]] = None):
    """配置日志系统"""
    set_log_level(level)
    if log_file:
        set_log_file(log_file)


scan_logger = get_stage_logger(LogStage.SCAN)
pack_logger = get_stage_logger(LogStage.PACK)
normalize_logger = get_stage_logger(LogStage.NORMALIZE)
compress_logger = get_stage_logger(LogStage.COMPRESS)
restore_logger = get_stage_logger(LogStage.RESTORE)


atexit.register(close_logger)
