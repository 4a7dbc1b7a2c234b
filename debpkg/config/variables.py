"""
安装路径变量

配置文件中的 {{.INSTALLPREFIX}}、{{.BINDIR}} 等占位符在 YAML 解析前展开。
除 INSTALLPREFIX 外，相对值展开时会加上 INSTALLPREFIX 前缀。
"""

import re
from typing import Dict, Iterator, Optional

from .errors import ConfigError

INSTALL_PREFIX = "INSTALLPREFIX"
BIN_DIR = "BINDIR"
SBIN_DIR = "SBINDIR"
SYSCONF_DIR = "SYSCONFDIR"
DATAROOT_DIR = "DATAROOTDIR"

DEFAULT_VARIABLES: Dict[str, str] = {
    INSTALL_PREFIX: "/usr",
    BIN_DIR: "bin",
    SBIN_DIR: "sbin",
    SYSCONF_DIR: "etc",
    DATAROOT_DIR: "share",
}

_TEMPLATE_PATTERN = re.compile(r"\{\{\s*\.([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


class Variables:
    """安装路径变量表"""

    def __init__(self, values: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(DEFAULT_VARIABLES)
        if values:
            self._values.update(values)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def get(self, key: str) -> str:
        """未定义的变量返回空字符串"""
        return self._values.get(key, "")

    def get_with_prefix(self, key: str) -> str:
        """获取变量值，非绝对路径时加上 INSTALLPREFIX 前缀"""
        value = self.get(key)
        if not value or value.startswith("/") or key == INSTALL_PREFIX:
            return value
        return self.get(INSTALL_PREFIX).rstrip("/") + "/" + value

    def expand(self, text: str) -> str:
        """展开文本中的 {{.NAME}} 占位符

        Raises:
            ConfigError: 引用了未定义的变量
        """
        def replace(match: 're.Match[str]') -> str:
            name = match.group(1)
            if name not in self._values:
                raise ConfigError(f"未定义的变量: {name}")
            return self.get_with_prefix(name)

        return _TEMPLATE_PATTERN.sub(replace, text)

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def to_dict(self) -> Dict[str, str]:
        return dict(self._values)
