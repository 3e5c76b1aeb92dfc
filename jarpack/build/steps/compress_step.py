"""
压缩发布步骤模块

把 packed 文件 gzip 为 .pack.gz 并删除中间文件；如果存在上次规范化留下的
备份标记，则把它恢复到原始归档位置。
"""

import os

from ...utils import file_size, format_size
from ...utils.logging import compress_logger, restore_logger
from jarpack.build.compressor import CompressionError
from jarpack.build.errors import BackupError, CompressError
from jarpack.build.task import TaskState
from jarpack.build.task_context import TaskContext
from .task_step import TaskStep


class CompressStep(TaskStep):
    """gzip 压缩与备份恢复步骤"""

    def __init__(self):
        super().__init__("compress", "压缩 packed 文件")

    def execute(self, context: TaskContext) -> None:
        task = context.task

        if not context.config.compress:
            context.advance(TaskState.COMPRESS_SKIPPED)
            compress_logger.debug(f"未启用压缩，保留 {task.packed_path.name}")
            return

        packed_path = task.packed_path
        compressed_path = task.compressed_path
        compress_logger.debug(f"压缩 {packed_path} -> {compressed_path}")

        # 压缩失败时中间文件和备份标记保持原样
        try:
            context.stats['compressed_size'] = context.compressor.compress_file(packed_path, compressed_path)
        except CompressionError as e:
            raise CompressError(packed_path, "压缩失败", e) from e

        try:
            packed_path.unlink()
        except OSError as e:
            raise CompressError(packed_path, "删除中间 packed 文件失败", e) from e

        self._restore_backup(context)
        context.advance(TaskState.COMPRESSED_DONE)

        compress_logger.debug(
            f"压缩完成 {task.display_name}: {format_size(context.stats['packed_size'])}"
            f" -> {format_size(context.stats['compressed_size'])}"
        )

    def _restore_backup(self, context: TaskContext) -> None:
        """备份标记存在时覆盖恢复原始归档；不存在时什么也不做"""
        task = context.task
        backup_path = task.backup_path

        if not backup_path.is_file():
            return

        try:
            os.replace(backup_path, task.archive_path)
        except OSError as e:
            raise BackupError(backup_path, "恢复备份标记失败", e) from e

        context.stats['restored'] = True
        context.stats['archive_size'] = file_size(task.archive_path)
        restore_logger.debug(f"已恢复 {backup_path.name} -> {task.archive_path.name}")


