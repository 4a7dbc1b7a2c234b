"""构建服务模块

提供组装 Debian 二进制包的核心功能。
"""

from .build_context import (
    BuildContext,
    BuildError,
    ClosedError,
    DebPkgError,
    PackageIOError,
    PackageState,
    SigningError,
    ValidationError,
)
from .build_pipeline import BuildPipeline
from .control import ControlMetadata, PackageVersion, Priority, VcsType
from .control_archive import ControlArchiveBuilder
from .data import DataArchiveBuilder, DirectoryIndex, FileManifest, FileManifestEntry
from .ar import ArMember, ContainerWriter
from .digest import Digest, DigestEntry, DigestSigner, HashCalculator
from .package import Package, get_architecture
from .targzip import TarGzipWriter

__all__ = [
    # 包
    "Package",
    "get_architecture",

    # 控制信息
    "ControlMetadata",
    "PackageVersion",
    "Priority",
    "VcsType",

    # 归档与容器
    "TarGzipWriter",
    "DataArchiveBuilder",
    "DirectoryIndex",
    "FileManifest",
    "FileManifestEntry",
    "ControlArchiveBuilder",
    "ArMember",
    "ContainerWriter",

    # 签名
    "Digest",
    "DigestEntry",
    "DigestSigner",
    "HashCalculator",

    # 管道
    "BuildContext",
    "BuildPipeline",
    "PackageState",

    # 异常
    "DebPkgError",
    "ValidationError",
    "PackageIOError",
    "ClosedError",
    "SigningError",
    "BuildError",
]
