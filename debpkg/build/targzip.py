"""
tar + gzip 写入器

将 tar 流经 gzip 压缩后写入临时文件，供 control.tar.gz 与 data.tar.gz 共用。
所有成员强制属主 root (uid/gid 0)，成员名去掉首尾 '/'。
"""

import hashlib
import io
import os
import tarfile
import tempfile
import time
from pathlib import Path
from typing import BinaryIO, Optional, Union

from .build_context import ClosedError, PackageIOError
from ..utils.paths import archive_name

FILE_MODE = 0o644
DIRECTORY_MODE = 0o755


class _DigestReader:
    """读取时同步计算 MD5 的包装流"""

    def __init__(self, source: BinaryIO):
        self._source = source
        self.md5 = hashlib.md5()

    def read(self, size: int = -1) -> bytes:
        chunk = self._source.read(size)
        if chunk:
            self.md5.update(chunk)
        return chunk


class TarGzipWriter:
    """tar.gz 临时文件写入器

    状态 Open -> Closed 仅迁移一次，关闭后的写入会抛出 ClosedError。
    """

    def __init__(self, temp_dir: Union[str, Path], prefix: str = "debpkg"):
        try:
            fd, name = tempfile.mkstemp(prefix=prefix, suffix=".tar.gz", dir=str(temp_dir))
        except OSError as e:
            raise PackageIOError(f"无法创建临时文件 (dir={temp_dir}): {e}") from e

        self._path = Path(name)
        self._file = os.fdopen(fd, 'wb')
        self._tar = tarfile.open(fileobj=self._file, mode='w:gz', format=tarfile.GNU_FORMAT)
        self._written = 0
        self._closed = False

    @property
    def path(self) -> Path:
        """临时文件路径"""
        return self._path

    @property
    def written(self) -> int:
        """已写入的未压缩内容字节数（不含 tar 头）"""
        return self._written

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise ClosedError(f"归档已关闭: {self._path.name}")

    def _new_member(self, name: str, mode: int, mtime: Optional[float] = None) -> tarfile.TarInfo:
        member_name = archive_name(name)
        if not member_name:
            raise PackageIOError("empty destination filename")

        tarinfo = tarfile.TarInfo(member_name)
        tarinfo.mode = mode
        tarinfo.uid = 0
        tarinfo.gid = 0
        tarinfo.uname = "root"
        tarinfo.gname = "root"
        tarinfo.mtime = int(time.time() if mtime is None else mtime)
        return tarinfo

    def add_directory(self, path: str) -> None:
        """写入目录条目（权限 0755）"""
        self._check_open()
        tarinfo = self._new_member(path, DIRECTORY_MODE)
        tarinfo.type = tarfile.DIRTYPE
        try:
            self._tar.addfile(tarinfo)
        except OSError as e:
            raise PackageIOError(f"写入目录条目失败 {path}: {e}") from e

    def add_file(self, source: Union[str, Path], dest: str, mode: int = FILE_MODE) -> str:
        """从磁盘文件写入一个成员

        源文件在写入 tar 头之前打开，打开失败不会破坏已写入的归档内容。

        Returns:
            str: 写入内容的 MD5 十六进制摘要
        """
        self._check_open()
        try:
            fd = open(source, 'rb')
        except OSError as e:
            raise PackageIOError(f"无法读取源文件 {source}: {e}") from e

        with fd:
            stat = os.fstat(fd.fileno())
            tarinfo = self._new_member(dest, mode, mtime=stat.st_mtime)
            tarinfo.size = stat.st_size
            reader = _DigestReader(fd)
            try:
                self._tar.addfile(tarinfo, reader)
            except OSError as e:
                raise PackageIOError(f"写入文件失败 {source} -> {dest}: {e}") from e

        self._written += tarinfo.size
        return reader.md5.hexdigest()

    def add_bytes(self, dest: str, content: bytes, mode: int = FILE_MODE) -> str:
        """从内存缓冲写入一个成员

        Returns:
            str: 内容的 MD5 十六进制摘要
        """
        self._check_open()
        tarinfo = self._new_member(dest, mode)
        tarinfo.size = len(content)
        try:
            self._tar.addfile(tarinfo, io.BytesIO(content))
        except OSError as e:
            raise PackageIOError(f"写入成员失败 {dest}: {e}") from e

        self._written += len(content)
        return hashlib.md5(content).hexdigest()

    def close(self) -> None:
        """结束 tar 流并刷新 gzip 尾部"""
        self._check_open()
        self._closed = True
        try:
            self._tar.close()
            self._file.close()
        except OSError as e:
            raise PackageIOError(f"关闭归档失败 {self._path.name}: {e}") from e

    def size(self) -> int:
        """关闭后文件的字节数"""
        try:
            return self._path.stat().st_size
        except OSError:
            return 0

    def read_bytes(self) -> bytes:
        """读取最终的压缩字节"""
        return self._path.read_bytes()

    def remove(self) -> None:
        """删除临时文件（未关闭时先丢弃写入流）"""
        if not self._closed:
            self._closed = True
            try:
                self._tar.close()
            except (OSError, tarfile.TarError):
                pass  # 临时文件随后删除
            finally:
                self._file.close()
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass
