"""
流压缩器抽象接口和实现

把 packed 文件压缩为 .pack.gz；压缩器本身无状态，只在字节流之间工作。
"""

import gzip
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, List, Optional, Protocol

from ..utils.paths import remove_quietly


CHUNK_SIZE = 64 * 1024


class CompressionError(Exception):
    """压缩相关错误"""
    pass


class ProgressCallback(Protocol):
    """进度回调协议"""

    def __call__(self, current: int, total: int) -> None:
        ...


class StreamCompressor(ABC):
    """流压缩器抽象基类"""

    suffix: str = ""

    @abstractmethod
    def compress_stream(
        self,
        input_stream: BinaryIO,
        output_stream: BinaryIO,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> int:
        """压缩输入流到输出流

        Args:
            input_stream: 输入流
            output_stream: 输出流
            progress_callback: 进度回调

        Returns:
            int: 读取的原始字节数

        Raises:
            CompressionError: 压缩失败
        """
        pass

    @abstractmethod
    def decompress_stream(self, input_stream: BinaryIO, output_stream: BinaryIO) -> int:
        """解压输入流到输出流，返回写出的字节数"""
        pass

    @abstractmethod
    def get_algorithm(self) -> str:
        """获取压缩算法名称"""
        pass

    def compress_file(self, source: Path, target: Path) -> int:
        """压缩文件；失败时删除半成品目标文件

        Returns:
            int: 压缩后的文件大小
        """
        try:
            with open(source, 'rb') as src, open(target, 'wb') as dst:
                self.compress_stream(src, dst)
        except CompressionError:
            remove_quietly(target)
            raise
        except OSError as e:
            remove_quietly(target)
            raise CompressionError(f"压缩文件失败 {source}: {e}") from e

        return target.stat().st_size


class GzipCompressor(StreamCompressor):
    """Gzip 压缩器"""

    suffix = ".gz"

    def __init__(self, level: int = 9, mtime: Optional[int] = 0):
        self.level = min(9, max(1, level))
        # mtime 固定为 0，使同样的输入得到字节一致的输出
        self.mtime = mtime

    def get_algorithm(self) -> str:
        return "gzip"

    def compress_stream(
        self,
        input_stream: BinaryIO,
        output_stream: BinaryIO,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> int:
        processed = 0
        try:
            with gzip.GzipFile(fileobj=output_stream, mode='wb',
                               compresslevel=self.level, mtime=self.mtime) as gz:
                while True:
                    chunk = input_stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    gz.write(chunk)
                    processed += len(chunk)
                    if progress_callback:
                        progress_callback(processed, 0)
        except OSError as e:
            raise CompressionError(f"Gzip 压缩失败: {e}") from e

        return processed

    def decompress_stream(self, input_stream: BinaryIO, output_stream: BinaryIO) -> int:
        try:
            with gzip.GzipFile(fileobj=input_stream, mode='rb') as gz:
                before = output_stream.tell() if output_stream.seekable() else 0
                shutil.copyfileobj(gz, output_stream, CHUNK_SIZE)
                after = output_stream.tell() if output_stream.seekable() else 0
        except (OSError, EOFError) as e:
            raise CompressionError(f"Gzip 解压失败: {e}") from e
        return after - before


class CompressorFactory:
    """压缩器工厂"""

    @staticmethod
    def create_compressor(algorithm: str = "gzip", level: int = 9) -> StreamCompressor:
        """创建压缩器

        Raises:
            CompressionError: 不支持的算法
        """
        if algorithm == "gzip":
            return GzipCompressor(level)
        raise CompressionError(f"不支持的压缩算法: {algorithm}")

    @staticmethod
    def get_available_algorithms() -> List[str]:
        return ["gzip"]
