"""
ar 容器写入器

按固定顺序 debian-binary -> control.tar.gz -> data.tar.gz -> (digests.asc) 输出 .deb。
输出先写入同目录的临时文件，成功后原子替换，失败时删除，不留下残缺文件。
"""

import os
import shutil
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from ..utils.logging import debug, LogStage
from ..utils.paths import ensure_directory
from .build_context import PackageIOError

AR_MAGIC = b"!<arch>\n"
AR_HEADER_SIZE = 60
AR_NAME_MAX = 16
AR_MEMBER_MODE = 0o100644

DEBIAN_BINARY = "debian-binary"
DEBIAN_BINARY_CONTENT = b"2.0\n"
CONTROL_MEMBER = "control.tar.gz"
DATA_MEMBER = "data.tar.gz"
DIGEST_MEMBER = "digests.asc"


@dataclass
class ArMember:
    """ar 成员：内容来自内存或磁盘文件"""
    name: str
    content: Optional[bytes] = None
    path: Optional[Path] = None

    @property
    def size(self) -> int:
        if self.content is not None:
            return len(self.content)
        return self.path.stat().st_size  # type: ignore[union-attr]


def ar_header(name: str, size: int, mtime: int, mode: int = AR_MEMBER_MODE) -> bytes:
    """构建 60 字节的 ar 成员头

    字段：名称(16) 时间(12) uid(6) gid(6) 八进制权限(8) 十进制大小(10) 结束符 '`\\n'
    """
    if len(name) > AR_NAME_MAX:
        raise ValueError(f"ar 成员名超过 {AR_NAME_MAX} 字符: {name}")

    header = (
        name.ljust(16)
        + str(mtime).ljust(12)
        + "0".ljust(6)
        + "0".ljust(6)
        + format(mode, "o").ljust(8)
        + str(size).ljust(10)
        + "`\n"
    ).encode("ascii")

    if len(header) != AR_HEADER_SIZE:
        raise ValueError(f"ar 成员头长度错误: {len(header)}")
    return header


class ContainerWriter:
    """.deb ar 容器写入器"""

    def __init__(self, mtime: Optional[int] = None):
        self.mtime = int(time.time()) if mtime is None else mtime

    @staticmethod
    def members(control_path: Path, data_path: Path, digest: Optional[str] = None) -> List[ArMember]:
        """按固定顺序组装成员列表"""
        members = [
            ArMember(DEBIAN_BINARY, content=DEBIAN_BINARY_CONTENT),
            ArMember(CONTROL_MEMBER, path=control_path),
            ArMember(DATA_MEMBER, path=data_path),
        ]
        if digest:
            members.append(ArMember(DIGEST_MEMBER, content=digest.encode('utf-8')))
        return members

    def _write_member(self, fd, member: ArMember) -> None:
        size = member.size
        fd.write(ar_header(member.name, size, self.mtime))
        if member.content is not None:
            fd.write(member.content)
        else:
            with open(member.path, 'rb') as src:  # type: ignore[arg-type]
                shutil.copyfileobj(src, fd)
        # 成员数据按 2 字节对齐
        if size % 2 == 1:
            fd.write(b"\n")
        debug(f"ar 成员: {member.name} ({size} bytes)", stage=LogStage.WRITE)

    def write(self, filename: Union[str, Path], members: List[ArMember]) -> Path:
        """写出 ar 容器

        Raises:
            PackageIOError: 创建或写入失败（不会留下残缺的输出文件）
        """
        output = Path(filename)
        try:
            parent = ensure_directory(output.parent if str(output.parent) else ".")
            fd_num, tmp_name = tempfile.mkstemp(prefix=f".{output.name}.", suffix=".part", dir=str(parent))
        except OSError as e:
            raise PackageIOError(f"unable to create: {output}: {e}") from e

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd_num, 'wb') as fd:
                fd.write(AR_MAGIC)
                for member in members:
                    self._write_member(fd, member)
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, output)
        except (OSError, ValueError) as e:
            tmp_path.unlink(missing_ok=True)
            raise PackageIOError(f"写入 deb 失败 {output}: {e}") from e

        return output
