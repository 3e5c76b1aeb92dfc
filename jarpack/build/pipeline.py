"""
转换管道模块

使用步骤管道处理单个归档：先 pack，再按运行模式进入规范化分支或压缩分支。
任务级错误在这里被捕获并转换为失败的 TaskResult，不影响其他任务。
"""

import time
from dataclasses import dataclass
from typing import List, Optional

from ..config.schema import RunConfiguration
from ..utils.logging import debug, error, info, LogStage
from .codec import ArchiveCodec
from .compressor import GzipCompressor, StreamCompressor
from .errors import TaskError
from .steps.compress_step import CompressStep
from .steps.normalize_step import NormalizeStep
from .steps.pack_step import PackStep
from .steps.task_step import TaskStep
from .task import ArchiveTask, TaskState
from .task_context import TaskContext


@dataclass
class TaskResult:
    """单个任务的处理结果"""
    task: ArchiveTask
    state: TaskState
    outcome: Optional[TaskState] = None
    error: Optional[TaskError] = None
    elapsed: float = 0.0
    archive_size: int = 0
    packed_size: int = 0
    compressed_size: int = 0
    restored: bool = False

    @property
    def success(self) -> bool:
        return self.state == TaskState.DONE


class TransformPipeline:
    """单归档转换管道"""

    def __init__(
        self,
        config: RunConfiguration,
        codec: ArchiveCodec,
        compressor: Optional[StreamCompressor] = None,
    ):
        self.config = config
        self.codec = codec
        self.compressor = compressor or GzipCompressor()
        self._pack_steps: List[TaskStep] = [PackStep()]
        self._branch_steps: List[TaskStep] = (
            [NormalizeStep()] if config.normalize_only else [CompressStep()]
        )

    def get_steps(self) -> List[TaskStep]:
        """获取本次运行使用的全部步骤"""
        return self._pack_steps + self._branch_steps

    def process(self, task: ArchiveTask) -> TaskResult:
        """处理一个归档任务

        Args:
            task: 归档任务

        Returns:
            TaskResult: 终态为 DONE 或 FAILED 的处理结果
        """
        context = TaskContext(
            task=task,
            config=self.config,
            codec=self.codec,
            compressor=self.compressor,
        )
        context.stats['start_time'] = time.time()

        try:
            for step in self.get_steps():
                debug(f"{task.display_name}: {step.description}", stage=LogStage.PACK)
                step.execute(context)
            context.advance(TaskState.DONE)
            info(f"{task.display_name} 处理完成", stage=LogStage.PACK)

        except TaskError as e:
            context.error = e
            context.advance(TaskState.FAILED)
            error(f"[{e.stage}] {e}", stage=LogStage.PACK)

        except Exception as e:
            context.error = TaskError(task.archive_path, "处理失败", e)
            context.advance(TaskState.FAILED)
            error(str(context.error), stage=LogStage.PACK)

        context.stats['end_time'] = time.time()
        return TaskResult(
            task=task,
            state=context.state,
            outcome=context.outcome,
            error=context.error,
            elapsed=context.stats['end_time'] - context.stats['start_time'],
            archive_size=context.stats['archive_size'],
            packed_size=context.stats['packed_size'],
            compressed_size=context.stats['compressed_size'],
            restored=context.stats['restored'],
        )
