"""归档处理步骤"""

from .task_step import TaskStep
from .pack_step import PackStep
from .normalize_step import NormalizeStep
from .compress_step import CompressStep

__all__ = [
    "TaskStep",
    "PackStep",
    "NormalizeStep",
    "CompressStep",
]
