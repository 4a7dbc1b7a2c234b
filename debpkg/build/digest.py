"""
包摘要与签名 (digests.asc)

对 debian-binary、control.tar.gz、data.tar.gz 的最终字节计算 MD5/SHA1/大小，
渲染 dpkg-sig 兼容的摘要文本，并调用 GnuPG 生成 clear-signed 文本。
"""

import hashlib
import shutil
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..utils.logging import debug, LogStage
from .ar import ArMember
from .build_context import SigningError

DIGEST_VERSION = 4
DIGEST_ROLE = "builder"

CHUNK_SIZE = 64 * 1024


def ansic_date(when: Optional[datetime] = None) -> str:
    """ANSI C 格式时间，例如 'Mon Jan  2 15:04:05 2006'（日期以空格补齐）"""
    when = when or datetime.now()
    return f"{when:%a %b} {when.day:2d} {when:%H:%M:%S %Y}"


@dataclass(frozen=True)
class DigestEntry:
    """单个成员的摘要三元组"""
    name: str
    md5: str
    sha1: str
    size: int

    def to_line(self) -> str:
        return f"\t{self.md5} {self.sha1} {self.size} {self.name}\n"


class HashCalculator:
    """同时计算 MD5 与 SHA1"""

    def __init__(self):
        self._md5 = hashlib.md5()
        self._sha1 = hashlib.sha1()
        self.size = 0

    def update(self, data: bytes) -> None:
        self._md5.update(data)
        self._sha1.update(data)
        self.size += len(data)

    def update_from_file(self, file_path: Union[str, Path], chunk_size: int = CHUNK_SIZE) -> None:
        with open(file_path, 'rb') as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break
                self.update(chunk)

    def entry(self, name: str) -> DigestEntry:
        return DigestEntry(name, self._md5.hexdigest(), self._sha1.hexdigest(), self.size)

    @classmethod
    def for_member(cls, member: ArMember) -> DigestEntry:
        """对 ar 成员的最终字节计算摘要"""
        calculator = cls()
        if member.content is not None:
            calculator.update(member.content)
        else:
            calculator.update_from_file(member.path)  # type: ignore[arg-type]
        return calculator.entry(member.name)


@dataclass
class Digest:
    """摘要文件内容"""
    signer: str
    date: str
    files: List[DigestEntry] = field(default_factory=list)
    version: int = DIGEST_VERSION
    role: str = DIGEST_ROLE

    @classmethod
    def from_members(cls, members: Sequence[ArMember], signer: str, date: Optional[str] = None) -> 'Digest':
        return cls(
            signer=signer,
            date=date or ansic_date(),
            files=[HashCalculator.for_member(member) for member in members],
        )

    def plaintext(self) -> str:
        """渲染未签名的摘要文本"""
        return (
            f"Version: {self.version}\n"
            f"Signer: {self.signer}\n"
            f"Date: {self.date}\n"
            f"Role: {self.role}\n"
            "Files: \n"
            + "".join(entry.to_line() for entry in self.files)
        )


class DigestSigner:
    """通过 GnuPG 命令行 clear-sign 摘要文本

    Args:
        key_id: 签名私钥的 key id / 指纹 / uid
        signer: 写入 Signer 行的身份，缺省使用 key_id
        gpg_home: GnuPG home 目录（--homedir）
        gpg_binary: gpg 可执行文件
    """

    def __init__(
        self,
        key_id: str,
        signer: Optional[str] = None,
        gpg_home: Optional[Union[str, Path]] = None,
        gpg_binary: str = "gpg",
    ):
        if not key_id:
            raise SigningError("签名 key id 不能为空")
        self.key_id = key_id
        self.signer = signer or key_id
        self.gpg_home = gpg_home
        self.gpg_binary = gpg_binary

    def command(self) -> List[str]:
        """构建 gpg 命令行"""
        binary = shutil.which(self.gpg_binary)
        if binary is None:
            raise SigningError(f"找不到 GnuPG 可执行文件: {self.gpg_binary}")

        cmd = [binary]
        if self.gpg_home:
            cmd += ["--homedir", str(self.gpg_home)]
        cmd += ["--batch", "--yes", "--quiet", "--armor", "--clearsign", "--default-key", self.key_id]
        return cmd

    def sign(self, plaintext: str) -> str:
        """clear-sign 文本

        Returns:
            str: ASCII-armored clear-signed 文本

        Raises:
            SigningError: gpg 不存在、执行失败或无输出
        """
        cmd = self.command()
        debug(f"签名命令: {' '.join(cmd)}", stage=LogStage.SIGN)
        try:
            result = subprocess.run(
                cmd,
                input=plaintext.encode('utf-8'),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False,
            )
        except OSError as e:
            raise SigningError(f"error while signing: {e}") from e

        if result.returncode != 0:
            stderr = result.stderr.decode('utf-8', errors='replace').strip()
            raise SigningError(f"error while signing: gpg 退出码 {result.returncode}: {stderr}")

        signed = result.stdout.decode('utf-8')
        if "-----BEGIN PGP SIGNED MESSAGE-----" not in signed:
            raise SigningError("error while signing: gpg 没有输出 clear-signed 文本")
        return signed
