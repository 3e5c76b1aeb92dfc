"""
任务步骤基类模块

定义归档处理步骤的抽象接口。
"""

from abc import ABC, abstractmethod

from jarpack.build.task_context import TaskContext


class TaskStep(ABC):
    """任务步骤抽象基类"""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description

    @abstractmethod
    def execute(self, context: TaskContext) -> None:
        """执行步骤

        Raises:
            TaskError: 步骤失败
        """
        pass
