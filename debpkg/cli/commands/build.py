"""
Build 命令

读取 debpkg.yml，把配置应用到 Package 并写出 .deb（可选签名）。
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...build import BuildContext, DebPkgError, DigestSigner, Package
from ...config import ConfigError, ConfigValidationError, DebPkgConfig, apply_config, load_config
from ...utils import format_size
from ...utils.logging import OutputLevel, set_log_file, set_log_level


console = Console()


class ProgressPrinter:
    """把管道的进度回调打印成 '阶段 [百分比] 消息'，同一百分比只打印一次"""

    def __init__(self):
        self._last = -1

    def __call__(self, stage: str, current: int, total: int, message: str = "") -> None:
        percent = current * 100 // total if total else 0
        if percent == self._last:
            return
        self._last = percent
        suffix = f" {message}" if message else ""
        console.print(f"[blue]{stage}[/blue] [{percent:3d}%]{suffix}", highlight=False)


def _load(config_path: Path) -> DebPkgConfig:
    try:
        return load_config(config_path)
    except ConfigValidationError as e:
        console.print(f"[red]规格文件验证失败[/red] ({len(e.errors)} 个问题):")
        console.print(e.format_errors(), markup=False)
    except ConfigError as e:
        console.print(f"[red]规格文件错误[/red]: {escape(str(e))}")
    raise typer.Exit(1)


def _summary(output_path: Path, context: BuildContext, signer: Optional[DigestSigner]) -> Table:
    stats = context.build_stats
    table = Table(show_header=False, box=None)
    table.add_column(style="blue")
    table.add_column()
    table.add_row("输出", str(output_path))
    table.add_row("安装大小", format_size(stats['installed_size']))
    table.add_row("control.tar.gz", format_size(stats['control_size']))
    table.add_row("data.tar.gz", format_size(stats['data_size']))
    table.add_row("文件大小", format_size(stats['output_size']))
    if signer is not None:
        table.add_row("签名者", signer.signer)
    return table


def build_command(
    config: str = typer.Option(..., "--config", "-c", help="规格文件路径 (debpkg.yml)"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="输出 .deb 路径，缺省为 <name>-<version>_<arch>.deb"),
    sign_key: Optional[str] = typer.Option(None, "--sign-key", help="签名使用的 GnuPG key id"),
    signer: Optional[str] = typer.Option(None, "--signer", help="写入 digests.asc 的签名者身份"),
    gpg_home: Optional[str] = typer.Option(None, "--gpg-home", help="GnuPG home 目录"),
    temp_dir: Optional[str] = typer.Option(None, "--temp-dir", help="中间归档文件目录"),
    force: bool = typer.Option(False, "--force", "-f", help="覆盖已存在的输出文件"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="同时把日志追加写入该文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出 DEBUG 级别日志"),
) -> None:
    """构建 .deb

    示例:
        debpkg build -c debpkg.yml
        debpkg build -c debpkg.yml -o hello.deb --sign-key 0xDEADBEEF
    """
    if verbose:
        set_log_level(OutputLevel.DEBUG)
    if log_file:
        try:
            set_log_file(log_file)
        except OSError as e:
            console.print(f"[yellow]无法打开日志文件 {log_file}: {escape(str(e))}[/yellow]")

    config_path = Path(config)
    console.print(f"[cyan]读取规格文件[/cyan]: {config_path}")
    spec = _load(config_path)

    output_path = Path(output) if output else Path(spec.get_filename())
    if output_path.exists() and not force:
        console.print(f"[red]输出文件已存在[/red]: {output_path} (使用 --force 覆盖)")
        raise typer.Exit(1)

    try:
        digest_signer = DigestSigner(sign_key, signer=signer, gpg_home=gpg_home) if sign_key else None

        with Package(temp_dir=temp_dir) as package:
            apply_config(spec, package)
            progress = ProgressPrinter()
            if digest_signer is not None:
                context = package.write_signed(output_path, digest_signer, progress_callback=progress)
            else:
                context = package.write(output_path, progress_callback=progress)
    except DebPkgError as e:
        console.print(f"[red]✗ 构建失败[/red]: {escape(str(e))}")
        raise typer.Exit(1)

    console.print(f"[green]✓ 构建完成[/green]: {output_path}")
    console.print(_summary(output_path, context, digest_signer))
