"""
Validate 命令

检查规格文件：YAML 语法、schema 以及引用的源文件是否存在。
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Tuple

import typer
from rich.console import Console
from rich.table import Table

from ...config import validate_config
from ...config.errors import format_location


console = Console()


def _error_rows(errors: List[Dict[str, Any]]) -> List[Tuple[str, str, str]]:
    """错误字典 -> (位置, 问题, 输入值) 三元组"""
    rows = []
    for item in errors:
        value = item.get('input')
        rows.append((
            format_location(item.get('loc', ())) or "<根>",
            str(item.get('msg', '未知错误')),
            "-" if value in (None, "") else str(value),
        ))
    return rows


def validate_command(
    config: str = typer.Option(..., "--config", "-c", help="规格文件路径 (debpkg.yml)"),
    json_output: bool = typer.Option(False, "--json", help="以 JSON 输出检查结果"),
) -> None:
    """验证规格文件

    示例:
        debpkg validate -c debpkg.yml
        debpkg validate -c debpkg.yml --json
    """
    spec_path = Path(config)
    if not spec_path.is_file():
        console.print(f"[red]规格文件不存在: {spec_path}[/red]")
        raise typer.Exit(1)

    errors = validate_config(spec_path)

    if json_output:
        report = {
            "file": str(spec_path),
            "valid": not errors,
            "error_count": len(errors),
            "errors": errors,
        }
        # 直接写 stdout，避免 rich 按终端宽度折行
        typer.echo(json.dumps(report, ensure_ascii=False, indent=2, default=str))
        raise typer.Exit(1 if errors else 0)

    if not errors:
        console.print(f"[green]✓ 规格文件验证通过[/green]: {spec_path}")
        return

    table = Table(title=f"{spec_path.name}: {len(errors)} 个问题")
    table.add_column("位置", style="cyan", no_wrap=True)
    table.add_column("问题", style="red")
    table.add_column("输入值", style="yellow", max_width=40, overflow="ellipsis")
    for row in _error_rows(errors):
        table.add_row(*row)

    console.print(table)
    raise typer.Exit(1)
