"""
debpkg CLI 主入口

命令：build / validate / example / info。
"""

import platform
import shutil
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..build import get_architecture
from ..config import (
    ConfigError,
    DebPkgConfig,
    DescriptionModel,
    FileModel,
    DEFAULT_VARIABLES,
    save_config,
)
from ..utils import configure_logging
from .commands import build, validate


app = typer.Typer(
    name="debpkg",
    help="debpkg - Debian 二进制包 (.deb) 组装工具",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

console = Console()


def _print_version(value: bool) -> None:
    if value:
        console.print(f"debpkg v{__version__}")
        raise typer.Exit()


def _set_verbosity(verbose: bool) -> None:
    configure_logging(level="DEBUG" if verbose else "INFO")


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None, "--version",
        callback=_print_version, is_eager=True,
        help="显示版本并退出",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        callback=_set_verbosity,
        help="输出 DEBUG 级别日志",
    ),
) -> None:
    """debpkg - 根据 YAML 规格文件组装 Debian 二进制包"""


app.command("build", help="根据规格文件构建 .deb")(build.build_command)
app.command("validate", help="验证规格文件")(validate.validate_command)


def _environment_table() -> Table:
    table = Table(title="运行环境")
    table.add_column("项目", style="cyan")
    table.add_column("值", style="green")
    table.add_row("debpkg", __version__)
    table.add_row("Python", platform.python_version())
    table.add_row("主机架构", f"{get_architecture()} ({platform.machine()})")

    gpg = shutil.which("gpg")
    table.add_row("GnuPG", gpg or "[red]未找到，无法签名[/red]")
    return table


def _variables_table() -> Table:
    table = Table(title="规格文件模板变量")
    table.add_column("占位符", style="cyan")
    table.add_column("默认值", style="green")
    for name, value in DEFAULT_VARIABLES.items():
        table.add_row("{{." + name + "}}", value)
    return table


@app.command("info")
def info_command() -> None:
    """显示运行环境与默认模板变量"""
    console.print(_environment_table())
    console.print(_variables_table())


def example_config() -> DebPkgConfig:
    """示例规格：一个可执行文件加一个配置文件"""
    return DebPkgConfig(
        name="hello",
        version="1.0.0",
        architecture=get_architecture() or "all",
        maintainer="Example Maintainer",
        maintainer_email="maintainer@example.com",
        homepage="https://example.com/hello",
        section="utils",
        depends="libc6 (>= 2.17)",
        description=DescriptionModel(
            short="示例程序",
            long="这是一个由 debpkg 生成的示例包。\n\n可以按需修改本文件。",
        ),
        files=[
            FileModel(file="./bin/hello", dest="{{.BINDIR}}/hello"),
            FileModel(content="greeting=hello\n", dest="{{.SYSCONFDIR}}/hello.conf", conffile=True),
        ],
        emptydirs=["/var/lib/hello"],
    )


@app.command("example")
def example_command(
    output: str = typer.Option("debpkg.yml", "--output", "-o", help="输出规格文件路径"),
) -> None:
    """生成示例规格文件"""
    try:
        save_config(example_config(), output)
    except ConfigError as e:
        console.print(f"[red]写入示例规格文件失败[/red]: {e}")
        raise typer.Exit(1)

    console.print(f"✓ 已生成示例规格文件 [green]{output}[/green]")
    console.print(f"修改后运行: [cyan]debpkg build -c {output}[/cyan]")


if __name__ == "__main__":
    app()
