"""
测试用的进程内替身

FakeCodec 在进程内模拟 Pack200：pack 把归档内容按行排序后加上头部，
unpack 去掉头部，因此 unpack(pack(x)) 是 x 的规范化形式，且再次规范化不再变化。
"""

from pathlib import Path
from typing import Iterable, List

from jarpack.build.codec import CodecError
from jarpack.config.schema import RunConfiguration


PACK_HEADER = b"FAKEPACK\n"


def fake_pack_bytes(data: bytes) -> bytes:
    return PACK_HEADER + b"\n".join(sorted(data.splitlines()))


def fake_unpack_bytes(data: bytes) -> bytes:
    assert data.startswith(PACK_HEADER)
    return data[len(PACK_HEADER):]


class FakeCodec:
    """进程内编解码器，可按文件名注入失败"""

    def __init__(self, fail_pack: Iterable[str] = (), fail_unpack: Iterable[str] = ()):
        self.fail_pack = set(fail_pack)
        self.fail_unpack = set(fail_unpack)
        self.packed: List[Path] = []
        self.unpacked: List[Path] = []

    def pack(self, archive_path: Path, packed_path: Path) -> None:
        data = Path(archive_path).read_bytes()
        if Path(archive_path).name in self.fail_pack:
            # 模拟写了一半后失败
            Path(packed_path).write_bytes(PACK_HEADER[:3])
            raise CodecError(f"模拟打包失败: {archive_path}", returncode=1, stderr="boom")
        Path(packed_path).write_bytes(fake_pack_bytes(data))
        self.packed.append(Path(archive_path))

    def unpack(self, packed_path: Path, archive_path: Path) -> None:
        if Path(archive_path).name in self.fail_unpack:
            Path(archive_path).write_bytes(b"partial")
            raise CodecError(f"模拟解包失败: {archive_path}", returncode=1, stderr="boom")
        Path(archive_path).write_bytes(fake_unpack_bytes(Path(packed_path).read_bytes()))
        self.unpacked.append(Path(archive_path))


def make_config(source_root: Path, **kwargs) -> RunConfiguration:
    return RunConfiguration(source_root=source_root, **kwargs)


def snapshot(root: Path) -> dict:
    """目录快照：相对路径 -> 内容"""
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


