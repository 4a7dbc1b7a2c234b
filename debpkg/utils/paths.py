"""
路径工具

提供归档成员路径规范化、临时目录与大小格式化等工具函数。
"""

import os
import posixpath
import tempfile
from pathlib import Path
from typing import List, Optional, Union

DEBIAN_PATH_SEPARATOR = "/"


def to_posix(path: Union[str, Path]) -> str:
    """将本地路径分隔符统一为 '/'"""
    path = str(path)
    if os.sep != DEBIAN_PATH_SEPARATOR:
        path = path.replace(os.sep, DEBIAN_PATH_SEPARATOR)
    return path


def normalize_directory(path: Union[str, Path]) -> str:
    """规范化目录路径

    清理 '..' / '.' / 重复分隔符，统一分隔符，去掉末尾 '/'，并以 '/' 为根。
    当前目录 '.' 返回空字符串。
    """
    cleaned = posixpath.normpath(to_posix(path))
    if cleaned in (".", DEBIAN_PATH_SEPARATOR, "//"):
        return ""
    cleaned = cleaned.lstrip(DEBIAN_PATH_SEPARATOR)
    if cleaned in (".", "..") or cleaned.startswith("../"):
        return ""
    return DEBIAN_PATH_SEPARATOR + cleaned


def parent_chain(path: Union[str, Path]) -> List[str]:
    """计算路径的全部祖先目录，从根到直接父目录

    例如 '/usr/share/doc/file' -> ['/usr', '/usr/share', '/usr/share/doc']
    """
    dirname = posixpath.dirname(posixpath.normpath(to_posix(path)))
    chain = []
    current = ""
    for segment in dirname.split(DEBIAN_PATH_SEPARATOR):
        if not segment or segment == ".":
            continue
        current += DEBIAN_PATH_SEPARATOR + segment
        chain.append(current)
    return chain


def archive_name(path: Union[str, Path]) -> str:
    """归档成员名：去掉首尾 '/'"""
    return to_posix(path).strip(DEBIAN_PATH_SEPARATOR)


def ensure_directory(path: Union[str, Path], mode: int = 0o777) -> Path:
    """确保目录存在

    Args:
        path: 目录路径
        mode: 新建目录的权限

    Returns:
        Path: 目录路径
    """
    dir_path = Path(path)
    dir_path.mkdir(mode=mode, parents=True, exist_ok=True)
    return dir_path


def resolve_temp_dir(temp_dir: Optional[Union[str, Path]] = None) -> Path:
    """解析中间文件使用的临时目录

    None 时使用系统临时目录；目录不存在则创建（权限 0700，不会自动删除）。
    """
    if temp_dir is None or str(temp_dir) == "":
        return Path(tempfile.gettempdir())
    return ensure_directory(temp_dir, mode=0o700)


def format_size(size_bytes: int) -> str:
    """格式化文件大小

    Args:
        size_bytes: 字节数

    Returns:
        str: 格式化的大小字符串
    """
    if size_bytes == 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    unit_index = 0
    size = float(size_bytes)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} {units[unit_index]}"
    return f"{size:.1f} {units[unit_index]}"
