"""
归档编解码器接口和实现

Pack200 变换本身视为不透明能力：pack 把归档写成 packed 形式，unpack 反向还原。
默认实现调用 JDK 自带的 pack200 / unpack200 命令行工具。
"""

import os
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Protocol, runtime_checkable

from ..config.schema import CodecOptions, ToolsModel
from ..utils.logging import pack_logger


class CodecError(Exception):
    """编解码错误"""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class CodecUnavailableError(CodecError):
    """找不到编解码工具"""
    pass


@runtime_checkable
class ArchiveCodec(Protocol):
    """归档编解码能力协议

    pack 之后 unpack 必须得到语义等价、可用于签名的归档。
    """

    def pack(self, archive_path: Path, packed_path: Path) -> None:
        """把归档打包为 packed 形式

        Raises:
            CodecError: 打包失败
        """
        ...

    def unpack(self, packed_path: Path, archive_path: Path) -> None:
        """把 packed 形式还原为归档

        Raises:
            CodecError: 解包失败
        """
        ...


def build_pack_arguments(options: CodecOptions) -> List[str]:
    """把编解码参数转换为 pack200 命令行参数"""
    args = [
        "--no-gzip",
        f"--effort={options.effort}",
        f"--segment-limit={options.segment_limit}",
        "--keep-file-order" if options.keep_file_order else "--no-keep-file-order",
        f"--modification-time={options.modification_time.value}",
        f"--deflate-hint={options.deflate_hint.value}",
    ]
    for attribute_name in options.strip_code_attributes:
        args.append(f"--code-attribute={attribute_name}=strip")
    if options.fail_on_unknown_attributes:
        args.append("--unknown-attribute=error")
    return args


class Pack200ToolCodec:
    """基于 pack200 / unpack200 命令行工具的编解码器"""

    def __init__(
        self,
        options: CodecOptions,
        pack200: Path,
        unpack200: Optional[Path] = None,
        timeout_sec: Optional[int] = None,
    ):
        self.options = options
        self.pack200 = Path(pack200)
        self.unpack200 = Path(unpack200) if unpack200 else None
        self.timeout_sec = timeout_sec

    def pack_command(self, archive_path: Path, packed_path: Path) -> List[str]:
        return [str(self.pack200), *build_pack_arguments(self.options), "--", str(packed_path), str(archive_path)]

    def unpack_command(self, packed_path: Path, archive_path: Path) -> List[str]:
        if self.unpack200 is None:
            raise CodecUnavailableError("未配置 unpack200 工具，无法执行规范化")
        return [str(self.unpack200), str(packed_path), str(archive_path)]

    def pack(self, archive_path: Path, packed_path: Path) -> None:
        for attribute_name in self.options.strip_code_attributes:
            pack_logger.debug(f"剥离属性 {attribute_name}")
        self._run(self.pack_command(archive_path, packed_path), archive_path)

    def unpack(self, packed_path: Path, archive_path: Path) -> None:
        self._run(self.unpack_command(packed_path, archive_path), packed_path)

    def _run(self, cmd: List[str], subject: Path) -> None:
        pack_logger.debug(f"执行: {' '.join(cmd)}")
        try:
            res = subprocess.run(
                cmd,
                check=False,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self.timeout_sec,
            )
        except subprocess.TimeoutExpired as e:
            raise CodecError(f"{Path(cmd[0]).name} 超时 ({self.timeout_sec}s): {subject}") from e
        except OSError as e:
            raise CodecError(f"无法启动 {cmd[0]}: {e}") from e

        if res.returncode != 0:
            stderr = (res.stderr or res.stdout or "").strip()
            raise CodecError(
                f"{Path(cmd[0]).name} 返回 {res.returncode}: {stderr or '无输出'}",
                returncode=res.returncode,
                stderr=stderr,
            )


def _executable_name(name: str) -> str:
    return f"{name}.exe" if os.name == "nt" else name


def locate_tool(name: str, explicit: Optional[Path] = None, java_home: Optional[Path] = None) -> Optional[Path]:
    """查找外部工具：显式路径 > java_home/bin > JAVA_HOME/bin > PATH"""
    if explicit is not None:
        explicit = Path(explicit)
        return explicit if explicit.is_file() else None

    homes = []
    if java_home is not None:
        homes.append(Path(java_home))
    env_home = os.environ.get("JAVA_HOME")
    if env_home:
        homes.append(Path(env_home))

    for home in homes:
        candidate = home / "bin" / _executable_name(name)
        if candidate.is_file():
            return candidate

    found = shutil.which(name)
    return Path(found) if found else None


class CodecFactory:
    """编解码器工厂"""

    @staticmethod
    def create_codec(options: CodecOptions, tools: ToolsModel, need_unpack: bool = False) -> ArchiveCodec:
        """创建编解码器

        Args:
            options: Pack200 参数
            tools: 外部工具配置
            need_unpack: 是否需要 unpack200（规范化模式）

        Returns:
            ArchiveCodec: 编解码器实例

        Raises:
            CodecUnavailableError: 找不到所需工具
        """
        pack200 = locate_tool("pack200", tools.pack200, tools.java_home)
        if pack200 is None:
            raise CodecUnavailableError(
                "找不到 pack200 工具（JDK 14 起已移除），请通过 tools.pack200 或 tools.java_home 指定"
            )

        unpack200 = locate_tool("unpack200", tools.unpack200, tools.java_home)
        if need_unpack and unpack200 is None:
            raise CodecUnavailableError(
                "找不到 unpack200 工具，请通过 tools.unpack200 或 tools.java_home 指定"
            )

        return Pack200ToolCodec(options, pack200, unpack200, tools.timeout_sec)

    @staticmethod
    def get_tool_status(tools: ToolsModel) -> dict:
        """获取工具可用性，用于 info 命令"""
        return {
            name: locate_tool(name, getattr(tools, name), tools.java_home)
            for name in ("pack200", "unpack200")
        }
