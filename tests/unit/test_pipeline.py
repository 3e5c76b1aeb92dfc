"""
转换管道单元测试

测试单个归档的状态机：pack、规范化分支、压缩分支以及备份标记的创建与恢复。
"""

import gzip
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from jarpack.build.compressor import CompressionError, GzipCompressor
from jarpack.build.errors import BackupError, CompressError, NormalizeError, PackError, TaskError
from jarpack.build.pipeline import TaskResult, TransformPipeline
from jarpack.build.steps import CompressStep, NormalizeStep, PackStep
from jarpack.build.task import TaskState, derive_task

from fakes import FakeCodec, fake_pack_bytes, fake_unpack_bytes, make_config


def _pipeline(root: Path, codec=None, compressor=None, **kwargs) -> TransformPipeline:
    config = make_config(root, **kwargs).resolved()
    return TransformPipeline(config, codec or FakeCodec(), compressor)


def _task(root: Path, name: str, output_root: Path = None):
    return derive_task(root / name, root.resolve(), (output_root or root).resolve())


class TestPipelineSteps:
    """步骤组合测试"""

    def test_pack_mode_steps(self, tmp_path):
        """测试打包模式使用 pack + compress 步骤"""
        pipeline = _pipeline(tmp_path)
        steps = pipeline.get_steps()
        assert [type(s) for s in steps] == [PackStep, CompressStep]

    def test_normalize_mode_steps(self, tmp_path):
        """测试规范化模式使用 pack + normalize 步骤"""
        pipeline = _pipeline(tmp_path, normalize_only=True, signed="true")
        steps = pipeline.get_steps()
        assert [type(s) for s in steps] == [PackStep, NormalizeStep]

    def test_default_compressor_is_gzip(self, tmp_path):
        """测试默认压缩器"""
        pipeline = _pipeline(tmp_path)
        assert isinstance(pipeline.compressor, GzipCompressor)


class TestCompressPath:
    """压缩分支测试"""

    def test_pack_and_compress(self, archive_dir):
        """测试 pack + gzip，中间文件被删除"""
        original = (archive_dir / "a.jar").read_bytes()
        pipeline = _pipeline(archive_dir)

        result = pipeline.process(_task(archive_dir, "a.jar"))

        assert isinstance(result, TaskResult)
        assert result.success
        assert result.state == TaskState.DONE
        assert result.outcome == TaskState.COMPRESSED_DONE
        assert result.error is None

        assert not (archive_dir / "a.pack").exists()
        gz_path = archive_dir / "a.pack.gz"
        assert gz_path.exists()
        assert gzip.decompress(gz_path.read_bytes()) == fake_pack_bytes(original)
        # 原始归档保持不变
        assert (archive_dir / "a.jar").read_bytes() == original
        assert result.compressed_size == gz_path.stat().st_size
        assert result.archive_size == len(original)

    def test_compress_disabled_keeps_packed_file(self, archive_dir):
        """测试关闭压缩时 packed 文件就是最终产物"""
        pipeline = _pipeline(archive_dir, compress=False)

        result = pipeline.process(_task(archive_dir, "a.jar"))

        assert result.success
        assert result.outcome == TaskState.COMPRESS_SKIPPED
        assert (archive_dir / "a.pack").exists()
        assert not (archive_dir / "a.pack.gz").exists()

    def test_restore_backup_marker(self, archive_dir):
        """测试压缩后把备份标记恢复到原始位置"""
        normalized = b"normalized\ncontent"
        prior_original = b"the original archive"
        (archive_dir / "a.jar").write_bytes(normalized)
        (archive_dir / "a.original.jar").write_bytes(prior_original)

        result = _pipeline(archive_dir).process(_task(archive_dir, "a.jar"))

        assert result.success
        assert result.restored
        assert (archive_dir / "a.jar").read_bytes() == prior_original
        assert not (archive_dir / "a.original.jar").exists()
        # .pack.gz 来自运行前 a.jar 的内容
        gz_bytes = (archive_dir / "a.pack.gz").read_bytes()
        assert gzip.decompress(gz_bytes) == fake_pack_bytes(normalized)

    def test_no_backup_marker_means_no_restore(self, archive_dir):
        """测试没有备份标记时什么也不恢复"""
        result = _pipeline(archive_dir).process(_task(archive_dir, "b.jar"))

        assert result.success
        assert not result.restored
        assert (archive_dir / "b.jar").read_bytes() == b"two\none"

    def test_compression_failure_leaves_files(self, archive_dir):
        """测试压缩失败时中间文件和备份标记保持原样"""
        (archive_dir / "a.original.jar").write_bytes(b"backup")
        compressor = MagicMock()
        compressor.compress_file.side_effect = CompressionError("磁盘已满")

        result = _pipeline(archive_dir, compressor=compressor).process(_task(archive_dir, "a.jar"))

        assert not result.success
        assert result.state == TaskState.FAILED
        assert isinstance(result.error, CompressError)
        assert (archive_dir / "a.pack").exists()
        assert (archive_dir / "a.original.jar").read_bytes() == b"backup"
        assert (archive_dir / "a.jar").read_bytes() == b"zeta\nalpha\nmid"

    def test_unexpected_compressor_exception(self, archive_dir):
        """测试压缩器抛出意外异常时任务失败而不是中断"""
        compressor = MagicMock()
        compressor.compress_file.side_effect = RuntimeError("unexpected")

        result = _pipeline(archive_dir, compressor=compressor).process(_task(archive_dir, "a.jar"))

        assert result.state == TaskState.FAILED
        assert isinstance(result.error, TaskError)
        assert isinstance(result.error.cause, RuntimeError)

    def test_restore_failure_is_backup_error(self, archive_dir, monkeypatch):
        """测试恢复备份失败时报告 BackupError"""
        (archive_dir / "a.original.jar").write_bytes(b"backup")

        def broken_replace(src, dst):
            raise PermissionError("denied")

        monkeypatch.setattr("jarpack.build.steps.compress_step.os.replace", broken_replace)

        result = _pipeline(archive_dir).process(_task(archive_dir, "a.jar"))

        assert not result.success
        assert isinstance(result.error, BackupError)
        assert (archive_dir / "a.pack.gz").exists()

    def test_separate_output_root(self, archive_dir, tmp_path):
        """测试输出到单独目录"""
        (archive_dir / "sub").mkdir()
        (archive_dir / "sub" / "d.jar").write_bytes(b"d")
        out = tmp_path / "out"
        pipeline = _pipeline(archive_dir, output_root=out)

        result = pipeline.process(_task(archive_dir, "sub/d.jar", out))

        assert result.success
        assert (out / "sub" / "d.pack.gz").exists()
        assert not (archive_dir / "sub" / "d.pack.gz").exists()


class TestPackStep:
    """打包步骤测试"""

    def test_pack_failure_leaves_original_untouched(self, archive_dir):
        """测试打包失败：PackError，原始归档不变，无半成品"""
        codec = FakeCodec(fail_pack={"a.jar"})

        result = _pipeline(archive_dir, codec=codec).process(_task(archive_dir, "a.jar"))

        assert result.state == TaskState.FAILED
        assert result.outcome is None
        assert isinstance(result.error, PackError)
        assert result.error.path == (archive_dir / "a.jar").resolve()
        assert "模拟打包失败" in str(result.error)
        assert (archive_dir / "a.jar").read_bytes() == b"zeta\nalpha\nmid"
        assert not (archive_dir / "a.pack").exists()
        assert not (archive_dir / "a.pack.gz").exists()

    def test_missing_archive(self, tmp_path):
        """测试归档不存在"""
        result = _pipeline(tmp_path).process(_task(tmp_path, "missing.jar"))

        assert not result.success
        assert isinstance(result.error, PackError)

    def test_zero_length_archive(self, tmp_path):
        """测试零长度归档照常打包"""
        (tmp_path / "empty.jar").write_bytes(b"")

        result = _pipeline(tmp_path).process(_task(tmp_path, "empty.jar"))

        assert result.success
        assert gzip.decompress((tmp_path / "empty.pack.gz").read_bytes()) == fake_pack_bytes(b"")

    def test_unexpected_os_error_becomes_task_error(self, archive_dir):
        """测试编解码器抛出的 OSError 也被转换为任务失败"""
        codec = MagicMock()
        codec.pack.side_effect = OSError("no space left")

        result = _pipeline(archive_dir, codec=codec).process(_task(archive_dir, "a.jar"))

        assert not result.success
        assert isinstance(result.error, TaskError)


class TestNormalizePath:
    """规范化分支测试"""

    def test_normalize(self, archive_dir):
        """测试规范化：备份标记与原始归档一致，原位置为 unpack(pack(x))"""
        original = (archive_dir / "a.jar").read_bytes()
        pipeline = _pipeline(archive_dir, normalize_only=True, signed="yes")

        result = pipeline.process(_task(archive_dir, "a.jar"))

        assert result.success
        assert result.outcome == TaskState.NORMALIZED_DONE
        assert (archive_dir / "a.original.jar").read_bytes() == original
        expected = fake_unpack_bytes(fake_pack_bytes(original))
        assert (archive_dir / "a.jar").read_bytes() == expected
        # packed 文件保留，不生成 .pack.gz
        assert (archive_dir / "a.pack").exists()
        assert not (archive_dir / "a.pack.gz").exists()

    def test_normalize_uses_archive_extension(self, archive_dir):
        """测试 war 归档的备份标记扩展名"""
        result = _pipeline(archive_dir, normalize_only=True, signed="yes").process(_task(archive_dir, "c.war"))

        assert result.success
        assert (archive_dir / "c.original.war").read_bytes() == b"c-content"

    def test_existing_backup_marker_is_never_overwritten(self, archive_dir):
        """测试已存在的备份标记导致 BackupError 而不是被覆盖"""
        (archive_dir / "a.original.jar").write_bytes(b"older backup")

        result = _pipeline(archive_dir, normalize_only=True, signed="yes").process(_task(archive_dir, "a.jar"))

        assert not result.success
        assert isinstance(result.error, BackupError)
        assert (archive_dir / "a.original.jar").read_bytes() == b"older backup"
        assert (archive_dir / "a.jar").read_bytes() == b"zeta\nalpha\nmid"

    def test_unpack_failure_keeps_backup(self, archive_dir):
        """测试解包失败：NormalizeError，备份标记保留，不自动恢复"""
        original = (archive_dir / "a.jar").read_bytes()
        codec = FakeCodec(fail_unpack={"a.jar"})

        result = _pipeline(archive_dir, codec=codec, normalize_only=True, signed="yes").process(
            _task(archive_dir, "a.jar")
        )

        assert result.state == TaskState.FAILED
        assert isinstance(result.error, NormalizeError)
        assert (archive_dir / "a.original.jar").read_bytes() == original

    def test_unpack_arbitrary_exception(self, archive_dir):
        """测试解包抛出非 CodecError 异常时同样报告 NormalizeError"""
        codec = FakeCodec()
        codec.unpack = MagicMock(side_effect=ValueError("bad pack stream"))

        result = _pipeline(archive_dir, codec=codec, normalize_only=True, signed="yes").process(
            _task(archive_dir, "a.jar")
        )

        assert isinstance(result.error, NormalizeError)
        assert (archive_dir / "a.original.jar").exists()

    def test_normalization_is_idempotent(self, archive_dir):
        """测试对已规范化的归档再次 pack/unpack 不再改变内容"""
        pipeline = _pipeline(archive_dir, normalize_only=True, signed="yes")
        assert pipeline.process(_task(archive_dir, "a.jar")).success
        once = (archive_dir / "a.jar").read_bytes()

        # 清理上次留下的备份标记后再次规范化
        (archive_dir / "a.original.jar").unlink()
        assert pipeline.process(_task(archive_dir, "a.jar")).success

        assert (archive_dir / "a.jar").read_bytes() == once
        assert (archive_dir / "a.original.jar").read_bytes() == once


@pytest.mark.parametrize("error_cls", [PackError, BackupError, NormalizeError, CompressError])
def test_task_errors_carry_path_and_cause(error_cls):
    """测试任务错误携带路径和底层诊断"""
    cause = OSError("disk")
    err = error_cls(Path("/tmp/x.jar"), "失败", cause)

    assert err.path == Path("/tmp/x.jar")
    assert err.cause is cause
    assert "x.jar" in str(err)
    assert "disk" in str(err)
