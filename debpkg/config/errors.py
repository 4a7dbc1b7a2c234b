"""配置相关异常"""

import json
from typing import Any, Dict, List, Sequence

from ..build.build_context import DebPkgError


class ConfigError(DebPkgError):
    """规格文件无法读取、解析或展开"""
    pass


def format_location(loc: Sequence[Any]) -> str:
    """把 pydantic 的 loc 元组转成 'files[0].file' 形式"""
    text = ""
    for item in loc:
        if isinstance(item, int):
            text += f"[{item}]"
        else:
            text += f".{item}" if text else str(item)
    return text


class ConfigValidationError(ConfigError):
    """规格文件内容不符合 schema

    Args:
        message: 概要信息
        errors: pydantic 风格的错误字典列表（loc / msg / type / input）
    """

    def __init__(self, message: str, errors: List[Dict[str, Any]]):
        super().__init__(message)
        self.errors = errors

    def format_errors(self) -> str:
        """每个错误一行，附带输入值时再缩进一行"""
        lines = []
        for item in self.errors:
            where = format_location(item.get('loc', ())) or "<根>"
            lines.append(f"{where}: {item.get('msg', '未知错误')}")
            if item.get('input') not in (None, ""):
                lines.append(f"    输入值: {item['input']!r}")
        return "\n".join(lines)

    def format_errors_json(self) -> str:
        return json.dumps(self.errors, ensure_ascii=False, indent=2, default=str)
