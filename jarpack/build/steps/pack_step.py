"""
打包步骤模块

把原始归档写成 packed 形式。这一步不做任何破坏性操作，失败时只需清理
半成品 packed 文件，原始归档保持不变。
"""

from ...utils import ensure_directory, file_size, format_size, remove_quietly
from ...utils.logging import pack_logger
from jarpack.build.errors import PackError
from jarpack.build.task import TaskState
from jarpack.build.task_context import TaskContext
from .task_step import TaskStep


class PackStep(TaskStep):
    """Pack200 打包步骤"""

    def __init__(self):
        super().__init__("pack", "打包归档")

    def execute(self, context: TaskContext) -> None:
        task = context.task
        archive_path = task.archive_path
        packed_path = task.packed_path

        if not archive_path.is_file():
            raise PackError(archive_path, "归档文件不存在")

        context.stats['archive_size'] = file_size(archive_path)
        pack_logger.debug(f"打包 {task.display_name} -> {packed_path}")

        try:
            ensure_directory(packed_path.parent)
            context.codec.pack(archive_path, packed_path)
        except Exception as e:  # 任意编解码器实现的异常
            remove_quietly(packed_path)
            raise PackError(archive_path, "打包失败", e) from e

        if not packed_path.is_file():
            raise PackError(archive_path, "编解码器未生成 packed 文件")

        context.stats['packed_size'] = file_size(packed_path)
        context.advance(TaskState.PACKED)
        pack_logger.debug(
            f"打包完成 {task.display_name}: {format_size(context.stats['archive_size'])}"
            f" -> {format_size(context.stats['packed_size'])}"
        )
