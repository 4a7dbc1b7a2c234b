"""配置和 Schema 模块

提供 debpkg.yml 规格文件的加载、验证、保存与应用功能。
"""

from .schema import DebPkgConfig, DescriptionModel, FileModel
from .errors import ConfigError, ConfigValidationError
from .variables import DEFAULT_VARIABLES, Variables
from .loader import (
    ConfigLoader,
    apply_config,
    load_config,
    validate_config,
    save_config,
    config_loader
)

__all__ = [
    # 主要类
    "DebPkgConfig",
    "DescriptionModel",
    "FileModel",
    "ConfigLoader",
    "Variables",
    "DEFAULT_VARIABLES",

    # 异常类
    "ConfigError",
    "ConfigValidationError",

    # 便捷函数
    "apply_config",
    "load_config",
    "validate_config",
    "save_config",

    # 单例
    "config_loader",
]
