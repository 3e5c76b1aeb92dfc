"""
规范化步骤模块

把原始归档改名为备份标记，再用刚生成的 packed 文件在原位置 unpack 出
字节规范化的归档，供后续签名使用。备份标记有意保留。
"""

import os

from ...utils import file_size
from ...utils.logging import normalize_logger
from jarpack.build.errors import BackupError, NormalizeError
from jarpack.build.task import TaskState
from jarpack.build.task_context import TaskContext
from .task_step import TaskStep


class NormalizeStep(TaskStep):
    """unpack(pack(x)) 规范化步骤"""

    def __init__(self):
        super().__init__("normalize", "规范化归档")

    def execute(self, context: TaskContext) -> None:
        task = context.task
        archive_path = task.archive_path
        backup_path = task.backup_path

        # 已存在的备份标记绝不覆盖
        if os.path.lexists(backup_path):
            raise BackupError(backup_path, "备份标记已存在，请先清理上次运行的遗留文件")

        try:
            os.rename(archive_path, backup_path)
        except OSError as e:
            raise BackupError(archive_path, "创建备份标记失败", e) from e

        normalize_logger.debug(f"已备份 {task.display_name} -> {backup_path.name}")
        normalize_logger.debug(f"解包 {task.packed_path} -> {archive_path}")

        try:
            context.codec.unpack(task.packed_path, archive_path)
        except Exception as e:  # 任意编解码器实现的异常
            # 不自动恢复：备份标记保留，原位置可能为空或只写了一半
            raise NormalizeError(archive_path, "解包规范化失败，备份标记已保留", e) from e

        if not archive_path.is_file():
            raise NormalizeError(archive_path, "编解码器未生成规范化归档")

        context.stats['archive_size'] = file_size(archive_path)
        context.advance(TaskState.NORMALIZED_DONE)
        normalize_logger.debug(f"规范化完成 {task.display_name}")
