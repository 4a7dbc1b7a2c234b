"""
debpkg - Debian 二进制包 (.deb) 组装库与命令行工具

A library and CLI for assembling Debian binary packages.
"""

__version__ = "0.1.0"
__license__ = "MIT"

# 导出主要 API
from .build import (
    ClosedError,
    DebPkgError,
    DigestSigner,
    Package,
    PackageIOError,
    PackageState,
    Priority,
    SigningError,
    ValidationError,
    VcsType,
    get_architecture,
)

__all__ = [
    "Package",
    "PackageState",
    "Priority",
    "VcsType",
    "DigestSigner",
    "get_architecture",
    "DebPkgError",
    "ValidationError",
    "PackageIOError",
    "ClosedError",
    "SigningError",
    "__version__",
]
