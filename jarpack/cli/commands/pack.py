"""
Pack 命令实现

扫描归档目录并执行 Pack200 打包 / 规范化 / 压缩。
"""

import traceback
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from ...config import ConfigError, ConfigValidationError, RunConfiguration, load_config
from ...config.schema import DeflateHint, ModificationTime
from ...utils.logging import OutputLevel, set_log_file, set_log_level


console = Console()


def pack_command(
    source: Optional[Path] = typer.Option(None, "--source", "-d", help="要扫描的归档目录"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="输出目录（默认与归档目录相同）"),
    includes: Optional[List[str]] = typer.Option(None, "--include", "-i", help="包含模式，可重复或用逗号分隔"),
    excludes: Optional[List[str]] = typer.Option(None, "--exclude", "-x", help="排除模式，可重复或用逗号分隔"),
    use_default_excludes: Optional[bool] = typer.Option(
        None, "--default-excludes/--no-default-excludes", help="是否启用默认排除规则"
    ),
    normalize_only: Optional[bool] = typer.Option(
        None, "--normalize-only/--no-normalize-only", help="仅规范化（签名前使用）"
    ),
    signed: Optional[str] = typer.Option(None, "--signed", help="签名标识，未设置时规范化模式不执行"),
    effort: Optional[int] = typer.Option(None, "--effort", "-E", help="压缩力度 0-9（默认 7）"),
    segment_limit: Optional[int] = typer.Option(None, "--segment-limit", "-S", help="段大小上限，-1 不限制"),
    keep_file_order: Optional[bool] = typer.Option(
        None, "--keep-file-order/--no-keep-file-order", help="是否保持归档内文件顺序"
    ),
    modification_time: Optional[ModificationTime] = typer.Option(
        None, "--modification-time", "-m", help="修改时间策略"
    ),
    deflate_hint: Optional[DeflateHint] = typer.Option(None, "--deflate-hint", "-H", help="deflate 提示"),
    strip_code_attributes: Optional[List[str]] = typer.Option(
        None, "--strip", help="需要剥离的代码属性，可重复"
    ),
    fail_on_unknown_attributes: Optional[bool] = typer.Option(
        None, "--fail-on-unknown/--pass-unknown", help="遇到未知属性时是否报错"
    ),
    compress: Optional[bool] = typer.Option(None, "--compress/--no-compress", help="是否生成 .pack.gz"),
    pack200: Optional[Path] = typer.Option(None, "--pack200", help="pack200 可执行文件"),
    unpack200: Optional[Path] = typer.Option(None, "--unpack200", help="unpack200 可执行文件"),
    java_home: Optional[Path] = typer.Option(None, "--java-home", help="JDK 目录"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML 配置文件，命令行参数优先"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
) -> None:
    """打包归档目录

    示例:
        jarpack pack -d target/lib
        jarpack pack -d target/lib --normalize-only --signed yes
        jarpack pack -c jarpack.yaml --no-compress
    """
    from ...build.errors import ConfigurationError, ScanError
    from ...build.runner import BatchRunner

    # 只提升级别，保留顶层 -v 的设置
    if verbose:
        set_log_level(OutputLevel.DEBUG)

    if log_file:
        try:
            set_log_file(log_file)
        except OSError:
            console.print(f"[yellow]无法写入日志文件: {log_file}[/yellow]")

    overrides = dict(
        source_root=source,
        output_root=output,
        includes=includes or None,
        excludes=excludes or None,
        use_default_excludes=use_default_excludes,
        normalize_only=normalize_only,
        signed=signed,
        compress=compress,
        effort=effort,
        segment_limit=segment_limit,
        keep_file_order=keep_file_order,
        modification_time=modification_time,
        deflate_hint=deflate_hint,
        strip_code_attributes=strip_code_attributes or None,
        fail_on_unknown_attributes=fail_on_unknown_attributes,
        pack200=pack200,
        unpack200=unpack200,
        java_home=java_home,
    )

    try:
        if config:
            console.print(f"[cyan]正在加载配置文件[/cyan]: {config}")
            run_config = load_config(config).with_overrides(**overrides)
        else:
            if source is None:
                console.print("[red]必须通过 --source 或 --config 指定归档目录[/red]")
                raise typer.Exit(1)
            run_config = RunConfiguration(source_root=source).with_overrides(**overrides)

    except ConfigValidationError as e:
        console.print("[red]配置验证失败:[/red]")
        console.print(e.format_errors(), markup=False)
        raise typer.Exit(1)
    except ConfigError as e:
        console.print(f"[red]配置错误[/red]: {escape(str(e))}")
        raise typer.Exit(1)
    except ValueError as e:
        # with_overrides 重新验证时抛出的 pydantic ValidationError
        console.print(f"[red]参数无效[/red]: {escape(str(e))}")
        raise typer.Exit(1)

    if verbose:
        console.print("[dim]已启用详细模式 -- 将输出调试级日志[/dim]")

    try:
        result = BatchRunner().run(run_config)
    except (ConfigurationError, ScanError) as e:
        console.print(f"[red]✗ 运行失败[/red]: {escape(str(e))}")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]✗ 运行过程中发生意外错误[/red]: {escape(str(e))}")
        if log_file:
            console.print("[yellow]详细错误信息:[/yellow]")
            console.print(traceback.format_exc(), markup=False)
        raise typer.Exit(1)

    if result.success:
        console.print(f"[green]✓ {escape(result.summary())}[/green]")
    else:
        console.print(f"[red]✗ {escape(result.summary())}[/red]")
        if log_file:
            console.print(f"[yellow]请检查日志文件 {log_file} 获取详细信息。[/yellow]")
        raise typer.Exit(1)
