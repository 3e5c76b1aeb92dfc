"""单元测试公共夹具"""

from pathlib import Path

import pytest

from fakes import FakeCodec


@pytest.fixture
def fake_codec() -> FakeCodec:
    return FakeCodec()


@pytest.fixture
def archive_dir(tmp_path: Path) -> Path:
    """包含三个归档的目录"""
    root = tmp_path / "lib"
    root.mkdir()
    (root / "a.jar").write_bytes(b"zeta\nalpha\nmid")
    (root / "b.jar").write_bytes(b"two\none")
    (root / "c.war").write_bytes(b"c-content")
    return root
