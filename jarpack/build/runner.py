"""
批量运行器

负责一次运行的整体协调：校验配置、扫描候选文件、逐个执行转换管道，
并把各任务结果汇总为一次运行的结果。
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..config.schema import RunConfiguration, RunMode
from ..utils import format_size
from ..utils.logging import debug, error, info, success, warning, LogStage
from .codec import ArchiveCodec, CodecFactory, CodecUnavailableError
from .collector import PatternMatcher
from .compressor import StreamCompressor
from .errors import BatchFailure, ConfigurationError
from .pipeline import TaskResult, TransformPipeline
from .task import ArchiveTask, derive_task, is_backup_marker

# 进度回调类型 (stage, current, total, message)
ProgressCallback = Callable[[str, int, int, str], None]


@dataclass
class RunResult:
    """一次运行的结果"""
    mode: RunMode
    noop: bool = False
    results: List[TaskResult] = field(default_factory=list)
    elapsed: float = 0.0
    failure: Optional[BatchFailure] = None

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def success(self) -> bool:
        return self.failure is None

    def raise_on_failure(self) -> None:
        """存在失败任务时抛出 BatchFailure"""
        if self.failure is not None:
            raise self.failure

    def summary(self) -> str:
        if self.noop:
            return "规范化模式未设置签名标识，无需处理"
        if self.failure is not None:
            return str(self.failure)
        return f"{self.succeeded} 个归档处理完成"


class BatchRunner:
    """批量运行器

    编解码器、压缩器和匹配器都可以注入，便于替换实现。
    """

    def __init__(
        self,
        codec: Optional[ArchiveCodec] = None,
        compressor: Optional[StreamCompressor] = None,
        matcher_factory: Callable[..., PatternMatcher] = PatternMatcher,
    ):
        self.codec = codec
        self.compressor = compressor
        self.matcher_factory = matcher_factory

    def run(self, config: RunConfiguration, progress_callback: Optional[ProgressCallback] = None) -> RunResult:
        """执行一次批量运行

        Args:
            config: 运行配置
            progress_callback: 进度回调函数

        Returns:
            RunResult: 运行结果；任务失败记录在 failure 中

        Raises:
            ConfigurationError: 归档目录无效或找不到编解码工具
            ScanError: 扫描失败
        """
        start_time = time.time()
        self._validate(config)

        if config.normalize_only and not config.normalization_requested:
            info("规范化模式未设置 signed，跳过", stage=LogStage.INIT)
            return RunResult(mode=RunMode.NORMALIZE, noop=True, elapsed=time.time() - start_time)

        # 输出目录在处理任何文件之前解析一次
        config = config.resolved()
        debug(f"归档目录: {config.source_root} 输出目录: {config.output_root}", stage=LogStage.INIT)

        tasks = self.collect_tasks(config)
        result = RunResult(mode=config.mode)

        verb = "规范化" if config.normalize_only else "打包"
        info(f"{verb} {len(tasks)} 个文件", stage=LogStage.INIT)

        if tasks:
            pipeline = TransformPipeline(config, self._get_codec(config), self.compressor)
            for index, task in enumerate(tasks):
                if progress_callback:
                    progress_callback(verb, index, len(tasks), task.display_name)
                result.results.append(pipeline.process(task))
            if progress_callback:
                progress_callback(verb, len(tasks), len(tasks), "完成")

        result.elapsed = time.time() - start_time
        result.failure = self._aggregate(result)
        self._report(result)
        return result

    def collect_tasks(self, config: RunConfiguration) -> List[ArchiveTask]:
        """扫描并推导任务列表（按发现顺序）

        Args:
            config: 已解析输出目录的运行配置
        """
        matcher = self.matcher_factory(
            config.includes,
            config.excludes,
            config.use_default_excludes,
        )
        candidates = matcher.scan(config.source_root)

        tasks: List[ArchiveTask] = []
        seen: Dict[Path, str] = {}
        for candidate in candidates:
            if is_backup_marker(candidate.relative_path):
                debug(f"跳过备份标记: {candidate.relative_path}", stage=LogStage.SCAN)
                continue

            task = derive_task(candidate.path, config.source_root, config.output_root)

            # 不去重：同一目标的多个候选依次执行，最后一个生效
            previous = seen.get(task.archive_path)
            if previous is not None:
                warning(
                    f"{candidate.relative_path} 与 {previous} 推导出相同的目标 {task.display_name}，后处理者生效",
                    stage=LogStage.SCAN,
                )
            seen[task.archive_path] = candidate.relative_path
            tasks.append(task)

        return tasks

    def _validate(self, config: RunConfiguration) -> None:
        source_root = Path(config.source_root)
        if not source_root.exists():
            raise ConfigurationError(f"归档目录不存在: {source_root}")
        if not source_root.is_dir():
            raise ConfigurationError(f"归档路径不是目录: {source_root}")

    def _get_codec(self, config: RunConfiguration) -> ArchiveCodec:
        if self.codec is not None:
            return self.codec
        try:
            return CodecFactory.create_codec(config.codec, config.tools, need_unpack=config.normalize_only)
        except CodecUnavailableError as e:
            raise ConfigurationError(str(e)) from e

    def _aggregate(self, result: RunResult) -> Optional[BatchFailure]:
        failures = [r for r in result.results if not r.success]
        if not failures:
            return None
        return BatchFailure(failures[0].error, result.failed, result.succeeded)

    def _report(self, result: RunResult) -> None:
        """输出运行统计"""
        archive_size = sum(r.archive_size for r in result.results if r.success)
        if result.mode == RunMode.NORMALIZE:
            output_size = archive_size
        else:
            output_size = sum(r.compressed_size or r.packed_size for r in result.results if r.success)

        if result.failure is None:
            success(f"全部完成: {result.succeeded} 个归档", stage=LogStage.DONE)
        else:
            error(f"运行失败: {result.failure}", stage=LogStage.DONE)

        if result.succeeded and result.mode == RunMode.PACK:
            ratio = (1 - output_size / max(1, archive_size)) * 100 if archive_size else 0.0
            info(f"  原始大小: {format_size(archive_size)}")
            info(f"  输出大小: {format_size(output_size)}")
            info(f"  压缩率: {ratio:.1f}%")
        info(f"  耗时: {result.elapsed:.1f}秒")
