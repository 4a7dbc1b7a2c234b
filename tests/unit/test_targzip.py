"""
tar.gz 写入器单元测试
"""

import hashlib
import tarfile

import pytest

from debpkg.build.build_context import ClosedError, PackageIOError
from debpkg.build.targzip import DIRECTORY_MODE, FILE_MODE, TarGzipWriter


@pytest.fixture
def writer(tmp_path):
    w = TarGzipWriter(tmp_path, prefix="test-")
    yield w
    w.remove()


class TestTarGzipWriter:
    """TarGzipWriter 测试"""

    def test_creates_temp_file(self, tmp_path, writer):
        """临时文件创建在指定目录"""
        assert writer.path.parent == tmp_path
        assert writer.path.name.startswith("test-")
        assert writer.path.exists()
        assert not writer.closed

    def test_add_bytes(self, writer, tar_reader):
        """内存内容写入：root 属主、0644 权限、去掉前导 '/'"""
        md5 = writer.add_bytes("/etc/foo.conf", b"hello\n")
        writer.close()

        assert md5 == hashlib.md5(b"hello\n").hexdigest()
        assert writer.written == 6

        members = tar_reader(writer.read_bytes())
        assert len(members) == 1
        info, content = members[0]
        assert info.name == "etc/foo.conf"
        assert info.mode == FILE_MODE
        assert info.uid == 0 and info.gid == 0
        assert info.uname == "root" and info.gname == "root"
        assert content == b"hello\n"

    def test_add_directory(self, writer, tar_reader):
        """目录条目权限 0755"""
        writer.add_directory("/usr/share")
        writer.close()

        info, _ = tar_reader(writer.read_bytes())[0]
        assert info.name == "usr/share"
        assert info.type == tarfile.DIRTYPE
        assert info.mode == DIRECTORY_MODE
        assert writer.written == 0

    def test_add_file(self, tmp_path, writer, tar_reader):
        """磁盘文件写入并返回内容 MD5"""
        source = tmp_path / "payload.bin"
        source.write_bytes(b"\x00\x01" * 700)

        md5 = writer.add_file(source, "usr/lib/payload.bin")
        writer.close()

        assert md5 == hashlib.md5(source.read_bytes()).hexdigest()
        assert writer.written == 1400
        info, content = tar_reader(writer.read_bytes())[0]
        assert info.size == 1400
        assert content == source.read_bytes()

    def test_missing_source_keeps_archive_usable(self, tmp_path, writer, tar_reader):
        """源文件不可读时抛出 PackageIOError，已写入内容不受影响"""
        writer.add_bytes("a.txt", b"a")
        with pytest.raises(PackageIOError):
            writer.add_file(tmp_path / "missing", "b.txt")
        writer.add_bytes("c.txt", b"c")
        writer.close()

        names = [info.name for info, _ in tar_reader(writer.read_bytes())]
        assert names == ["a.txt", "c.txt"]
        assert writer.written == 2

    def test_empty_destination(self, writer):
        with pytest.raises(PackageIOError, match="empty destination filename"):
            writer.add_bytes("/", b"x")

    def test_long_names(self, writer, tar_reader):
        """GNU 格式支持超过 100 字符的成员名"""
        long_name = "usr/share/" + "d" * 120 + "/file.txt"
        writer.add_bytes(long_name, b"x")
        writer.close()

        info, _ = tar_reader(writer.read_bytes())[0]
        assert info.name == long_name

    def test_closed(self, writer):
        """关闭后写入或再次关闭抛出 ClosedError"""
        writer.close()
        assert writer.closed

        with pytest.raises(ClosedError):
            writer.add_bytes("x", b"x")
        with pytest.raises(ClosedError):
            writer.add_directory("/usr")
        with pytest.raises(ClosedError):
            writer.close()

    def test_remove(self, tmp_path):
        """remove 删除临时文件，未关闭时也可调用"""
        open_writer = TarGzipWriter(tmp_path)
        open_writer.add_bytes("x", b"x")
        open_writer.remove()
        assert not open_writer.path.exists()

        closed_writer = TarGzipWriter(tmp_path)
        closed_writer.close()
        closed_writer.remove()
        closed_writer.remove()
        assert not closed_writer.path.exists()

    def test_uncreatable_temp_dir(self, tmp_path):
        """临时目录不存在时抛出 PackageIOError"""
        with pytest.raises(PackageIOError):
            TarGzipWriter(tmp_path / "does-not-exist")
