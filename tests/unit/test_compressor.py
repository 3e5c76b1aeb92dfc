"""
压缩器单元测试
"""

import gzip
import io
from unittest.mock import patch

import pytest

from jarpack.build.compressor import (
    CompressionError,
    CompressorFactory,
    GzipCompressor,
    StreamCompressor,
)


class TestGzipCompressor:
    """Gzip 压缩器测试"""

    def test_compress_and_decompress(self):
        """测试压缩后解压得到原始数据"""
        compressor = GzipCompressor()
        data = b"packed content " * 1000

        compressed = io.BytesIO()
        processed = compressor.compress_stream(io.BytesIO(data), compressed)

        assert processed == len(data)
        assert len(compressed.getvalue()) < len(data)
        assert gzip.decompress(compressed.getvalue()) == data

        restored = io.BytesIO()
        written = compressor.decompress_stream(io.BytesIO(compressed.getvalue()), restored)
        assert written == len(data)
        assert restored.getvalue() == data

    def test_output_is_deterministic(self):
        """测试同样的输入得到字节一致的输出"""
        data = b"same input"

        first = io.BytesIO()
        second = io.BytesIO()
        GzipCompressor().compress_stream(io.BytesIO(data), first)
        GzipCompressor().compress_stream(io.BytesIO(data), second)

        assert first.getvalue() == second.getvalue()

    def test_progress_callback(self):
        calls = []
        GzipCompressor().compress_stream(
            io.BytesIO(b"x" * 10), io.BytesIO(), lambda current, total: calls.append(current)
        )
        assert calls == [10]

    def test_level_is_clamped(self):
        assert GzipCompressor(level=0).level == 1
        assert GzipCompressor(level=42).level == 9

    def test_decompress_invalid_data(self):
        """测试解压非 gzip 数据"""
        with pytest.raises(CompressionError):
            GzipCompressor().decompress_stream(io.BytesIO(b"not gzip"), io.BytesIO())


class TestCompressFile:
    """文件压缩测试"""

    def test_compress_file(self, tmp_path):
        source = tmp_path / "a.pack"
        source.write_bytes(b"pack data")
        target = tmp_path / "a.pack.gz"

        size = GzipCompressor().compress_file(source, target)

        assert size == target.stat().st_size
        assert gzip.decompress(target.read_bytes()) == b"pack data"

    def test_failure_removes_partial_target(self, tmp_path):
        """测试压缩失败时删除半成品"""
        source = tmp_path / "a.pack"
        source.write_bytes(b"pack data")
        target = tmp_path / "a.pack.gz"
        compressor = GzipCompressor()

        with patch.object(GzipCompressor, "compress_stream", side_effect=CompressionError("磁盘已满")):
            with pytest.raises(CompressionError):
                compressor.compress_file(source, target)

        assert not target.exists()

    def test_missing_source(self, tmp_path):
        """测试源文件不存在"""
        with pytest.raises(CompressionError):
            GzipCompressor().compress_file(tmp_path / "missing.pack", tmp_path / "missing.pack.gz")


class TestCompressorFactory:
    """压缩器工厂测试"""

    def test_create_gzip(self):
        compressor = CompressorFactory.create_compressor("gzip")
        assert isinstance(compressor, StreamCompressor)
        assert compressor.get_algorithm() == "gzip"
        assert compressor.suffix == ".gz"

    def test_unsupported_algorithm(self):
        with pytest.raises(CompressionError):
            CompressorFactory.create_compressor("zstd")

    def test_available_algorithms(self):
        assert CompressorFactory.get_available_algorithms() == ["gzip"]
