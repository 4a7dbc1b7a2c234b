"""
测试公共夹具

通过 python-debian 读取生成的 .deb (ar 容器) 及其中的 tar.gz 成员。
"""

import io
import tarfile
from pathlib import Path
from typing import Dict, List, Tuple, Union

import pytest
from debian.arfile import ArFile, ArMember
from debian.debfile import DebFile, DebPart


def read_ar(path: Union[str, Path]) -> List[ArMember]:
    """按写入顺序列出 ar 容器成员"""
    return ArFile(str(path)).getmembers()


def member_bytes(member: ArMember) -> bytes:
    member.seek(0)
    return member.read()


def _tar_members(tar: tarfile.TarFile) -> List[Tuple[tarfile.TarInfo, bytes]]:
    result = []
    for member in tar.getmembers():
        content = b""
        if member.isfile():
            extracted = tar.extractfile(member)
            content = extracted.read() if extracted else b""
        result.append((member, content))
    return result


def read_tar(data: bytes) -> List[Tuple[tarfile.TarInfo, bytes]]:
    """按写入顺序读取 tar.gz 中的成员及其内容"""
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
        return _tar_members(tar)


class DebReader:
    """DebFile 的薄封装，按成员名访问内容"""

    def __init__(self, path: Union[str, Path]):
        self.deb = DebFile(str(path))

    @property
    def names(self) -> List[str]:
        return self.deb.getnames()

    def member_data(self, name: str) -> bytes:
        return member_bytes(self.deb.getmember(name))

    def _part_members(self, part: DebPart) -> List[Tuple[tarfile.TarInfo, bytes]]:
        return _tar_members(part.tgz())

    def control_members(self) -> Dict[str, Tuple[tarfile.TarInfo, bytes]]:
        return {str(info.name): (info, content) for info, content in self._part_members(self.deb.control)}

    def control_names(self) -> List[str]:
        return [str(info.name) for info in self.deb.control.tgz().getmembers()]

    def control_text(self, name: str = "control") -> str:
        return self.deb.control.get_content(name, encoding="utf-8")

    def data_members(self) -> List[Tuple[tarfile.TarInfo, bytes]]:
        return self._part_members(self.deb.data)

    def data_names(self) -> List[str]:
        return [str(info.name) for info in self.deb.data.tgz().getmembers()]


@pytest.fixture
def deb_reader():
    """返回 .deb 读取器工厂"""
    return DebReader


@pytest.fixture
def ar_reader():
    return read_ar


@pytest.fixture
def tar_reader():
    return read_tar
