"""
jarpack CLI 主入口

提供命令行接口，支持 pack/validate/example/info 等命令。
"""

import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..utils import configure_logging
from .commands import pack, validate


app = typer.Typer(
    name="jarpack",
    help="jarpack - JAR 归档 Pack200 打包、规范化与压缩工具",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """显示版本信息"""
    if value:
        console.print(f"jarpack v{__version__}")
        raise typer.Exit()


def verbose_callback(verbose: bool) -> None:
    """配置详细输出"""
    configure_logging(level="DEBUG" if verbose else "INFO")


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="显示版本信息"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        callback=verbose_callback,
        help="启用详细输出"
    )
) -> None:
    """jarpack - JAR 归档 Pack200 打包、规范化与压缩工具

    使用 --help 查看可用命令的详细信息。
    """
    pass


app.command("pack", help="打包 / 规范化归档目录")(pack.pack_command)
app.command("validate", help="验证配置文件")(validate.validate_command)


@app.command("info")
def info_command(
    java_home: Optional[Path] = typer.Option(None, "--java-home", help="JDK 目录"),
) -> None:
    """显示系统信息"""
    from ..build.codec import CodecFactory
    from ..build.compressor import CompressorFactory
    from ..config.schema import ToolsModel

    console.print("[bold]jarpack 系统信息[/bold]")
    console.print()

    table = Table(title="版本信息")
    table.add_column("组件", style="cyan")
    table.add_column("版本", style="green")
    table.add_row("jarpack", __version__)
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    console.print(table)
    console.print()

    tool_table = Table(title="外部工具")
    tool_table.add_column("工具", style="cyan")
    tool_table.add_column("状态", style="green")
    for name, location in CodecFactory.get_tool_status(ToolsModel(java_home=java_home)).items():
        tool_table.add_row(name, f"✓ {location}" if location else "✗ 未找到")
    console.print(tool_table)
    console.print()

    algo_table = Table(title="支持的压缩算法")
    algo_table.add_column("算法", style="cyan")
    for algo in CompressorFactory.get_available_algorithms():
        algo_table.add_row(algo)
    console.print(algo_table)


@app.command("example")
def example_command(
    output: str = typer.Option(
        "jarpack.yaml",
        "--output", "-o",
        help="输出配置文件路径"
    )
) -> None:
    """生成示例配置文件"""
    from ..config import ConfigError, save_config
    from ..config.schema import CodecOptions, RunConfiguration

    config = RunConfiguration(
        source_root=Path("target/lib"),
        includes=["**/*.?ar"],
        excludes=["**/skip/**"],
        codec=CodecOptions(effort=7, segment_limit=-1),
    )

    try:
        save_config(config, output)
    except ConfigError as e:
        console.print(f"[red]生成示例配置失败: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"✓ 示例配置文件已生成: [green]{output}[/green]")
    console.print("请根据需要修改配置文件，然后运行:")
    console.print(f"  [cyan]jarpack pack -c {output}[/cyan]")


if __name__ == "__main__":
    app()
