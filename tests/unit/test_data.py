"""
data 归档单元测试

测试目录物化顺序、md5sums 清单与字节统计。
"""

import hashlib

import pytest

from debpkg.build.data import DataArchiveBuilder, FileManifest, FileManifestEntry
from debpkg.build.targzip import TarGzipWriter


@pytest.fixture
def builder(tmp_path):
    archive = TarGzipWriter(tmp_path)
    b = DataArchiveBuilder(archive)
    yield b
    archive.remove()


def finished_names(builder, tar_reader):
    builder.close()
    return [info.name for info, _ in tar_reader(builder.archive.read_bytes())]


class TestDirectoryIndex:
    """目录物化测试"""

    def test_parents_before_file(self, builder, tar_reader):
        """文件之前写入全部祖先目录，由浅到深"""
        builder.add_file_string("readme", "/usr/share/doc/pkg/README")

        assert builder.directories.directories == [
            "/usr", "/usr/share", "/usr/share/doc", "/usr/share/doc/pkg",
        ]
        assert finished_names(builder, tar_reader) == [
            "usr", "usr/share", "usr/share/doc", "usr/share/doc/pkg", "usr/share/doc/pkg/README",
        ]

    def test_dot_prefixed_directory(self, builder, tar_reader):
        """'..cache' 这样的目录名也先于其中的文件写入"""
        builder.add_file_string("x", "/..cache/f")

        assert builder.directories.directories == ["/..cache"]
        assert finished_names(builder, tar_reader) == ["..cache", "..cache/f"]

    def test_directories_written_once(self, builder, tar_reader):
        """共享祖先的文件不会重复写入目录条目"""
        builder.add_file_string("a", "/usr/bin/a")
        builder.add_file_string("b", "/usr/bin/b")
        builder.add_file_string("c", "usr/lib/c")

        assert finished_names(builder, tar_reader) == [
            "usr", "usr/bin", "usr/bin/a", "usr/bin/b", "usr/lib", "usr/lib/c",
        ]

    def test_empty_directory(self, builder, tar_reader):
        """空目录的每一级中间目录都是独立条目"""
        builder.add_directory("/var/lib/pkg")
        builder.add_directory("var/lib")

        assert builder.directories.directories == ["/var", "/var/lib", "/var/lib/pkg"]
        assert "/var/lib" in builder.directories
        assert "var/lib/pkg/" in builder.directories
        assert finished_names(builder, tar_reader) == ["var", "var/lib", "var/lib/pkg"]

    def test_current_directory_ignored(self, builder, tar_reader):
        builder.add_directory(".")
        builder.add_directory("/")

        assert builder.directories.directories == []
        assert finished_names(builder, tar_reader) == []

    def test_file_without_parent(self, builder, tar_reader):
        builder.add_file_string("x", "toplevel")

        assert finished_names(builder, tar_reader) == ["toplevel"]


class TestDataArchiveBuilder:
    """DataArchiveBuilder 测试"""

    def test_manifest_order_and_hashes(self, tmp_path, builder):
        """每次添加对应一行清单，顺序一致，MD5 与独立计算一致"""
        source = tmp_path / "tool"
        source.write_bytes(b"#!/bin/sh\necho hi\n")

        builder.add_file_string("first", "/etc/first")
        builder.add_file(source, "/usr/bin/tool")
        builder.add_file_string(b"third", "/etc/third")

        assert builder.manifest.md5sums() == (
            f"{hashlib.md5(b'first').hexdigest()}  /etc/first\n"
            f"{hashlib.md5(source.read_bytes()).hexdigest()}  /usr/bin/tool\n"
            f"{hashlib.md5(b'third').hexdigest()}  /etc/third\n"
        )
        assert len(builder.manifest) == 3

    def test_written_counts_content_bytes(self, builder):
        builder.add_file_string("12345", "/a/b")
        builder.add_directory("/c")
        builder.add_file_string("678", "/a/c")

        assert builder.written == 8

    def test_default_destination_is_source(self, tmp_path, builder):
        """缺省目标路径为源路径"""
        source = tmp_path / "data.txt"
        source.write_text("data")

        entry = builder.add_file(source)

        assert entry.dest == source.as_posix()
        assert entry.size == 4

    def test_file_contents(self, builder, tar_reader):
        builder.add_file_string("content", "/opt/x")
        builder.close()

        members = dict((info.name, content) for info, content in tar_reader(builder.archive.read_bytes()))
        assert members["opt/x"] == b"content"


class TestFileManifest:
    """FileManifest 测试"""

    def test_to_line(self):
        entry = FileManifestEntry("/usr/bin/x", "d41d8cd98f00b204e9800998ecf8427e", 0)
        assert entry.to_line() == "d41d8cd98f00b204e9800998ecf8427e  /usr/bin/x\n"

    def test_empty(self):
        manifest = FileManifest()
        assert manifest.md5sums() == ""
        assert list(manifest) == []
