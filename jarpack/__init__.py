"""
jarpack - 构建期 JAR 归档 Pack200 后处理工具

A build-time post-processor that packs, normalizes and compresses JAR archives.
"""

__version__ = "0.1.0"
__author__ = "Project Team"
__license__ = "MIT"

from .config.schema import RunConfiguration, CodecOptions
from .build.runner import BatchRunner, RunResult

__all__ = ["RunConfiguration", "CodecOptions", "BatchRunner", "RunResult", "__version__"]
