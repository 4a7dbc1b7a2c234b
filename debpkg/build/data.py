"""
数据归档 (data.tar.gz)

负责目录树物化、文件写入与 md5sums 清单累积。
任何文件条目写入之前，其全部祖先目录都已作为显式目录条目写入且只写一次。
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Union

from ..utils.logging import debug, LogStage
from ..utils.paths import normalize_directory, parent_chain, to_posix
from .targzip import TarGzipWriter


@dataclass(frozen=True)
class FileManifestEntry:
    """清单条目：目标路径、内容 MD5、字节数"""
    dest: str
    md5: str
    size: int

    def to_line(self) -> str:
        return f"{self.md5}  {self.dest}\n"


@dataclass
class FileManifest:
    """按添加顺序记录的文件清单"""
    entries: List[FileManifestEntry] = field(default_factory=list)

    def append(self, entry: FileManifestEntry) -> None:
        self.entries.append(entry)

    def md5sums(self) -> str:
        """md5sums 文件内容：每个条目一行 '<md5>  <dest>'"""
        return "".join(entry.to_line() for entry in self.entries)

    def __iter__(self) -> Iterator[FileManifestEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


class DirectoryIndex:
    """已写入 data 归档的目录集合（保持插入顺序）"""

    def __init__(self, archive: TarGzipWriter):
        self._archive = archive
        self._dirs: List[str] = []
        self._seen = set()

    @property
    def directories(self) -> List[str]:
        return list(self._dirs)

    def __contains__(self, path: str) -> bool:
        return normalize_directory(path) in self._seen

    def add_directory(self, path: Union[str, Path]) -> None:
        """写入单个目录条目；已存在或规范化为 '.' 时不做任何事"""
        dirpath = normalize_directory(path)
        if not dirpath or dirpath in self._seen:
            return

        self._archive.add_directory(dirpath)
        self._dirs.append(dirpath)
        self._seen.add(dirpath)
        debug(f"目录: {dirpath}", stage=LogStage.DATA)

    def add_parent_directories(self, dest: Union[str, Path]) -> None:
        """从根到直接父目录依次写入 dest 的全部祖先目录"""
        for ancestor in parent_chain(dest):
            self.add_directory(ancestor)

    def add_empty_directory(self, path: Union[str, Path]) -> None:
        """写入目录本身及其每一级中间目录"""
        dirpath = normalize_directory(path)
        if not dirpath:
            return
        self.add_parent_directories(dirpath)
        self.add_directory(dirpath)


class DataArchiveBuilder:
    """data.tar.gz 构建器"""

    def __init__(self, archive: TarGzipWriter):
        self.archive = archive
        self.directories = DirectoryIndex(archive)
        self.manifest = FileManifest()

    @property
    def written(self) -> int:
        """累计写入的未压缩内容字节数，用于 Installed-Size"""
        return self.archive.written

    def add_file(self, source: Union[str, Path], dest: Optional[str] = None) -> FileManifestEntry:
        """从磁盘添加文件

        Args:
            source: 源文件路径
            dest: 包内目标路径，缺省时使用源路径

        Returns:
            FileManifestEntry: 新增的清单条目

        Raises:
            PackageIOError: 源文件不可读或写入失败
        """
        destination = dest if dest else to_posix(source)

        self.directories.add_parent_directories(destination)
        before = self.archive.written
        md5 = self.archive.add_file(source, destination)

        entry = FileManifestEntry(destination, md5, self.archive.written - before)
        self.manifest.append(entry)
        debug(f"文件: {source} -> {destination} ({entry.size} bytes)", stage=LogStage.DATA)
        return entry

    def add_file_string(self, content: Union[str, bytes], dest: str) -> FileManifestEntry:
        """从内存内容添加文件（生成的脚本等无需落盘）"""
        if isinstance(content, str):
            content = content.encode('utf-8')

        self.directories.add_parent_directories(dest)
        md5 = self.archive.add_bytes(dest, content)

        entry = FileManifestEntry(dest, md5, len(content))
        self.manifest.append(entry)
        debug(f"文件(内存): {dest} ({entry.size} bytes)", stage=LogStage.DATA)
        return entry

    def add_directory(self, path: Union[str, Path]) -> None:
        """添加单个目录（含祖先目录）"""
        self.directories.add_empty_directory(path)

    def close(self) -> None:
        self.archive.close()
