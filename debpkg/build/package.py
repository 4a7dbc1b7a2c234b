"""
Debian 二进制包

Package 聚合控制信息、data 归档与 control 归档，对外提供 set_* / add_* 修改接口
以及 write / write_signed。每个实例只能写出一次：

    OPEN --write 成功/close--> CLOSED
    OPEN --任意错误----------> ERRORED(首个错误)

进入终态后的任何操作都会被拒绝：CLOSED 抛出 ClosedError，ERRORED 重新抛出首个错误。
"""

import functools
import os
import platform
from pathlib import Path, PurePosixPath
from typing import Callable, Optional, TypeVar, Union

from ..utils.logging import debug, warning, LogStage
from ..utils.paths import resolve_temp_dir, to_posix
from .build_context import (
    BuildContext,
    ClosedError,
    DebPkgError,
    PackageIOError,
    PackageState,
    ProgressCallback,
)
from .build_pipeline import BuildPipeline
from .control import ControlMetadata, Priority, VcsType
from .control_archive import ControlArchiveBuilder
from .data import DataArchiveBuilder
from .digest import DigestSigner
from .targzip import TarGzipWriter

DEBIAN_FILE_EXTENSION = "deb"

F = TypeVar("F", bound=Callable)

# 常见 CPU 名称到 Debian 架构名的映射
_ARCHITECTURES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "i386": "i386",
    "i486": "i386",
    "i586": "i386",
    "i686": "i386",
    "x86": "i386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "armhf",
    "armv6l": "armel",
    "ppc64le": "ppc64el",
    "s390x": "s390x",
    "riscv64": "riscv64",
    "mips64": "mips64el",
}


def get_architecture() -> str:
    """当前主机 CPU 对应的 Debian 架构名"""
    machine = platform.machine().lower()
    return _ARCHITECTURES.get(machine, machine)


def _guarded(method: F) -> F:
    """检查包状态；方法抛出的 DebPkgError 会让包进入 ERRORED 状态"""

    @functools.wraps(method)
    def wrapper(self: 'Package', *args, **kwargs):
        self._check_state()
        try:
            return method(self, *args, **kwargs)
        except DebPkgError as e:
            self._fail(e)
            raise
        except OSError as e:
            io_error = PackageIOError(str(e))
            self._fail(io_error)
            raise io_error from e

    return wrapper  # type: ignore[return-value]


class Package:
    """单个 Debian 二进制包

    Args:
        temp_dir: 中间归档文件所在目录，None 时使用系统临时目录
    """

    def __init__(self, temp_dir: Optional[Union[str, Path]] = None):
        try:
            self.temp_dir = resolve_temp_dir(temp_dir)
        except OSError as e:
            raise PackageIOError(f"无法创建临时目录 {temp_dir}: {e}") from e
        self.metadata = ControlMetadata()
        self.pipeline = BuildPipeline()
        self._state = PackageState.OPEN
        self._error: Optional[DebPkgError] = None

        control_tgz = TarGzipWriter(self.temp_dir, prefix="debpkg-control-")
        try:
            data_tgz = TarGzipWriter(self.temp_dir, prefix="debpkg-data-")
        except PackageIOError:
            control_tgz.remove()
            raise

        self.control = ControlArchiveBuilder(control_tgz, self.metadata)
        self.data = DataArchiveBuilder(data_tgz)
        debug(f"新建包, 临时目录: {self.temp_dir}", stage=LogStage.INIT)

    # ------------------------------------------------------------------
    # 状态

    @property
    def state(self) -> PackageState:
        return self._state

    @property
    def error(self) -> Optional[DebPkgError]:
        """首个记录的错误"""
        return self._error

    def _check_state(self) -> None:
        if self._state == PackageState.ERRORED:
            raise self._error  # type: ignore[misc]
        if self._state == PackageState.CLOSED:
            raise ClosedError()

    def _fail(self, err: DebPkgError) -> None:
        if self._state != PackageState.OPEN:
            return
        self._state = PackageState.ERRORED
        self._error = err
        self._remove_temp_files()

    def _remove_temp_files(self) -> None:
        self.control.archive.remove()
        self.data.archive.remove()

    def close(self) -> None:
        """关闭包并删除中间文件；重复调用无副作用"""
        if self._state == PackageState.OPEN:
            self._remove_temp_files()
            self._state = PackageState.CLOSED

    def __enter__(self) -> 'Package':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # 控制信息

    @_guarded
    def set_name(self, name: str) -> None:
        """包名（必填）"""
        self.metadata.name = name

    @_guarded
    def set_version(self, version: str) -> None:
        """完整版本号，设置后 major/minor/patch 被忽略"""
        self.metadata.version.full = version

    @_guarded
    def set_version_major(self, major: int) -> None:
        self.metadata.version.major = major

    @_guarded
    def set_version_minor(self, minor: int) -> None:
        self.metadata.version.minor = minor

    @_guarded
    def set_version_patch(self, patch: int) -> None:
        self.metadata.version.patch = patch

    @property
    def version(self) -> str:
        """解析后的版本号字符串"""
        return str(self.metadata.version)

    @_guarded
    def set_architecture(self, arch: str) -> None:
        """架构，例如 'amd64'、'all'、'any'"""
        self.metadata.architecture = arch

    @_guarded
    def set_maintainer(self, maintainer: str) -> None:
        self.metadata.maintainer = maintainer

    @_guarded
    def set_maintainer_email(self, email: str) -> None:
        self.metadata.maintainer_email = email

    @_guarded
    def set_homepage(self, url: str) -> None:
        self.metadata.homepage = url

    @_guarded
    def set_section(self, section: str) -> None:
        self.metadata.section = section

    @_guarded
    def set_priority(self, priority: Union[Priority, str]) -> None:
        self.metadata.priority = Priority(priority)

    @_guarded
    def set_short_description(self, text: str) -> None:
        """单行摘要"""
        self.metadata.short_description = text

    @_guarded
    def set_description(self, text: str) -> None:
        """多行长描述，按 Debian 续行规则折叠"""
        self.metadata.set_description(text)

    @_guarded
    def set_vcs_type(self, vcs: Union[VcsType, str]) -> None:
        self.metadata.vcs_type = VcsType(vcs)

    @_guarded
    def set_vcs_url(self, url: str) -> None:
        self.metadata.vcs_url = url

    @_guarded
    def set_vcs_browser(self, url: str) -> None:
        self.metadata.vcs_browser = url

    @_guarded
    def set_built_using(self, info: str) -> None:
        """Built-Using，例如 'gcc-4.6 (= 4.6.0-11)'"""
        self.metadata.built_using = info

    @_guarded
    def set_depends(self, depends: str) -> None:
        self.metadata.depends = depends

    @_guarded
    def set_recommends(self, recommends: str) -> None:
        self.metadata.recommends = recommends

    @_guarded
    def set_suggests(self, suggests: str) -> None:
        self.metadata.suggests = suggests

    @_guarded
    def set_conflicts(self, conflicts: str) -> None:
        self.metadata.conflicts = conflicts

    @_guarded
    def set_provides(self, provides: str) -> None:
        self.metadata.provides = provides

    @_guarded
    def set_replaces(self, replaces: str) -> None:
        self.metadata.replaces = replaces

    # ------------------------------------------------------------------
    # 内容

    @_guarded
    def add_file(self, source: Union[str, Path], dest: Optional[str] = None, conffile: bool = False) -> None:
        """添加磁盘文件，dest 缺省时使用源路径"""
        entry = self.data.add_file(source, dest)
        if conffile:
            self.control.mark_config_file(entry.dest)

    @_guarded
    def add_file_string(self, content: Union[str, bytes], dest: str, conffile: bool = False) -> None:
        """以内存内容添加文件"""
        entry = self.data.add_file_string(content, dest)
        if conffile:
            self.control.mark_config_file(entry.dest)

    @_guarded
    def add_empty_directory(self, directory: Union[str, Path]) -> None:
        """添加空目录（每一级中间目录都会成为独立条目）"""
        self.data.add_directory(directory)

    @_guarded
    def add_directory(self, directory: Union[str, Path], dest: Optional[str] = None) -> None:
        """递归添加目录及其全部内容

        Args:
            directory: 源目录
            dest: 包内目标目录，缺省时使用源路径
        """
        root = Path(directory)
        if not root.is_dir():
            raise PackageIOError(f"目录不存在: {directory}")

        target = PurePosixPath(dest if dest else to_posix(root))
        self.data.add_directory(str(target))
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            relative = PurePosixPath(to_posix(Path(dirpath).relative_to(root)))
            for name in dirnames:
                self.data.add_directory(str(target / relative / name))
            for name in sorted(filenames):
                self.data.add_file(Path(dirpath) / name, str(target / relative / name))

    @_guarded
    def mark_config_file(self, dest: str) -> None:
        """将已添加的文件标记为配置文件（conffiles）"""
        self.control.mark_config_file(dest)

    @_guarded
    def add_control_extra(self, name: str, filename: Union[str, Path]) -> None:
        """从文件添加控制附加成员（preinst、postinst、prerm、postrm 等）"""
        self.control.add_control_extra(name, filename)

    @_guarded
    def add_control_extra_string(self, name: str, content: str) -> None:
        """以字符串添加控制附加成员"""
        self.control.add_control_extra_string(name, content)

    # ------------------------------------------------------------------
    # 输出

    def get_filename(self) -> str:
        """按 '<name>-<version>_<arch>.deb' 计算文件名"""
        return "%s-%s_%s.%s" % (
            self.metadata.name,
            self.version,
            self.metadata.architecture,
            DEBIAN_FILE_EXTENSION,
        )

    @_guarded
    def write(
        self,
        filename: Optional[Union[str, Path]] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BuildContext:
        """写出 .deb；成功后包进入 CLOSED 状态"""
        return self._write(filename, None, progress_callback)

    @_guarded
    def write_signed(
        self,
        filename: Optional[Union[str, Path]],
        signer: DigestSigner,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BuildContext:
        """写出带 digests.asc 签名成员的 .deb"""
        return self._write(filename, signer, progress_callback)

    def _write(
        self,
        filename: Optional[Union[str, Path]],
        signer: Optional[DigestSigner],
        progress_callback: Optional[ProgressCallback],
    ) -> BuildContext:
        output_path = Path(filename) if filename else Path(self.get_filename())
        if output_path.exists():
            warning(f"覆盖已存在的文件: {output_path}", stage=LogStage.WRITE)

        context = self.pipeline.execute(self, output_path, signer, progress_callback)
        self.close()
        return context
