"""
构建上下文模块

定义打包过程中的共享数据结构、包状态与异常类。
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .digest import Digest, DigestSigner
    from .package import Package

# 进度回调类型: (阶段, 当前, 总数, 消息)
ProgressCallback = Callable[[str, int, int, str], None]


class DebPkgError(Exception):
    """debpkg 错误基类"""
    pass


class ValidationError(DebPkgError):
    """控制信息校验失败（缺少必填字段）"""
    pass


class PackageIOError(DebPkgError, OSError):
    """文件读写失败（源文件不可读、临时文件无法创建、磁盘写入失败）"""
    pass


class ClosedError(DebPkgError):
    """包已关闭后仍尝试修改或写入"""

    def __init__(self, message: str = "debpkg: package is closed"):
        super().__init__(message)


class SigningError(DebPkgError):
    """OpenPGP 签名失败"""
    pass


class BuildError(DebPkgError):
    """构建管道某一步骤失败，原始异常通过 __cause__ 保留"""
    pass


class PackageState(str, Enum):
    """包生命周期状态"""
    OPEN = "open"
    CLOSED = "closed"
    ERRORED = "errored"


@dataclass
class BuildContext:
    """构建上下文，包含一次 write 调用中各步骤共享的数据"""
    package: 'Package'
    output_path: Path
    signer: Optional['DigestSigner'] = None
    progress_callback: Optional[ProgressCallback] = None

    # 构建过程中生成的数据
    digest: Optional['Digest'] = None
    clearsigned: Optional[str] = None

    # 统计信息
    build_stats: Dict[str, Any] = field(default_factory=lambda: {
        'start_time': 0.0,
        'end_time': 0.0,
        'installed_size': 0,
        'control_size': 0,
        'data_size': 0,
        'output_size': 0,
    })

    def report(self, stage: str, current: int, message: str = "") -> None:
        """回调进度（若设置了回调）"""
        if self.progress_callback:
            self.progress_callback(stage, current, 100, message)
