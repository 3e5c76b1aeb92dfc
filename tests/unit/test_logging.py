"""
日志工具单元测试
"""

import pytest

from jarpack.utils.logging import (
    LogStage,
    OutputFacade,
    OutputLevel,
    get_stage_logger,
)


@pytest.fixture
def facade():
    output = OutputFacade()
    yield output
    output.close()


class TestOutputFacade:
    """输出门面测试"""

    def test_log_file(self, facade, tmp_path, capsys):
        """测试消息同时写入日志文件"""
        log_file = tmp_path / "logs" / "run.log"
        facade.set_log_file(log_file)

        facade.info("打包 [lib/a.jar]", stage=LogStage.PACK)
        facade.close()

        content = log_file.read_text(encoding="utf-8")
        assert "[INFO] [PACK] 打包 [lib/a.jar]" in content
        assert "lib/a.jar" in capsys.readouterr().out

    def test_level_filtering(self, facade, tmp_path):
        log_file = tmp_path / "run.log"
        facade.set_log_file(log_file)
        facade.set_level(OutputLevel.WARNING)

        facade.debug("debug message")
        facade.info("info message")
        facade.warning("warning message")
        facade.close()

        content = log_file.read_text(encoding="utf-8")
        assert "info message" not in content
        assert "debug message" not in content
        assert "warning message" in content

    def test_unknown_level_ignored(self, facade):
        facade.set_level("LOUD")
        assert facade.get_level() == OutputLevel.INFO

    def test_errors_go_to_stderr(self, facade, capsys):
        facade.error("出错了")
        captured = capsys.readouterr()
        assert "出错了" in captured.err
        assert "出错了" not in captured.out


def test_stage_logger():
    logger = get_stage_logger(LogStage.COMPRESS)
    assert logger.stage == "COMPRESS"
