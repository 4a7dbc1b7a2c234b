"""通用工具模块"""

from .logging import (
    configure_logging,
    set_log_file,
    set_log_level,
    LogStage,
    OutputLevel,
)

from .paths import (
    archive_name,
    ensure_directory,
    format_size,
    normalize_directory,
    parent_chain,
    resolve_temp_dir,
    to_posix,
)

__all__ = [
    # 日志相关
    "configure_logging",
    "set_log_file",
    "set_log_level",
    "LogStage",
    "OutputLevel",

    # 路径相关
    "archive_name",
    "ensure_directory",
    "format_size",
    "normalize_directory",
    "parent_chain",
    "resolve_temp_dir",
    "to_posix",
]
