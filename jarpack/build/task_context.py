"""
任务上下文模块

定义单个归档处理过程中各步骤共享的数据结构。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..config.schema import RunConfiguration
from .codec import ArchiveCodec
from .compressor import StreamCompressor
from .errors import TaskError
from .task import ArchiveTask, TaskState


@dataclass
class TaskContext:
    """任务上下文，步骤之间通过它传递状态"""
    task: ArchiveTask
    config: RunConfiguration
    codec: ArchiveCodec
    compressor: StreamCompressor

    state: TaskState = TaskState.START
    outcome: Optional[TaskState] = None
    error: Optional[TaskError] = None

    # 统计信息
    stats: Dict[str, Any] = field(default_factory=lambda: {
        'start_time': 0.0,
        'end_time': 0.0,
        'archive_size': 0,
        'packed_size': 0,
        'compressed_size': 0,
        'restored': False,
    })

    def advance(self, state: TaskState) -> None:
        """进入下一个状态"""
        self.state = state
        if state in (TaskState.NORMALIZED_DONE, TaskState.COMPRESSED_DONE, TaskState.COMPRESS_SKIPPED):
            self.outcome = state
