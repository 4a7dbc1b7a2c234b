"""
摘要与签名单元测试

签名通过 mock subprocess / shutil.which 测试，不依赖本机 GnuPG。
"""

import hashlib
import subprocess
from datetime import datetime
from unittest.mock import patch

import pytest

from debpkg.build.ar import ArMember
from debpkg.build.build_context import SigningError
from debpkg.build.digest import (
    Digest,
    DigestEntry,
    DigestSigner,
    HashCalculator,
    ansic_date,
)

SIGNED = "-----BEGIN PGP SIGNED MESSAGE-----\nHash: SHA256\n\nVersion: 4\n-----BEGIN PGP SIGNATURE-----\n"


class TestDigest:
    """摘要文本测试"""

    def test_ansic_date(self):
        """日期以空格补齐"""
        assert ansic_date(datetime(2006, 1, 2, 15, 4, 5)) == "Mon Jan  2 15:04:05 2006"
        assert ansic_date(datetime(2016, 11, 20, 9, 0, 0)) == "Sun Nov 20 09:00:00 2016"

    def test_entry_line(self):
        entry = DigestEntry("debian-binary", "m", "s", 4)
        assert entry.to_line() == "\tm s 4 debian-binary\n"

    def test_hash_member(self, tmp_path):
        """内存与磁盘成员的摘要与独立计算一致"""
        from_memory = HashCalculator.for_member(ArMember("debian-binary", content=b"2.0\n"))
        assert from_memory.md5 == hashlib.md5(b"2.0\n").hexdigest()
        assert from_memory.sha1 == hashlib.sha1(b"2.0\n").hexdigest()
        assert from_memory.size == 4

        archive = tmp_path / "data.tar.gz"
        archive.write_bytes(b"\x1f\x8b" + b"x" * 100)
        from_file = HashCalculator.for_member(ArMember("data.tar.gz", path=archive))
        assert from_file.md5 == hashlib.md5(archive.read_bytes()).hexdigest()
        assert from_file.size == 102

    def test_plaintext(self):
        digest = Digest(
            signer="Jerry <jerry@example.com>",
            date="Mon Jan  2 15:04:05 2006",
            files=[
                DigestEntry("debian-binary", "m1", "s1", 4),
                DigestEntry("control.tar.gz", "m2", "s2", 10),
                DigestEntry("data.tar.gz", "m3", "s3", 20),
            ],
        )

        assert digest.plaintext() == (
            "Version: 4\n"
            "Signer: Jerry <jerry@example.com>\n"
            "Date: Mon Jan  2 15:04:05 2006\n"
            "Role: builder\n"
            "Files: \n"
            "\tm1 s1 4 debian-binary\n"
            "\tm2 s2 10 control.tar.gz\n"
            "\tm3 s3 20 data.tar.gz\n"
        )

    def test_from_members(self):
        members = [ArMember("debian-binary", content=b"2.0\n"), ArMember("x", content=b"")]
        digest = Digest.from_members(members, signer="me", date="now")

        assert [f.name for f in digest.files] == ["debian-binary", "x"]
        assert digest.date == "now"


class TestDigestSigner:
    """DigestSigner 测试"""

    def test_empty_key(self):
        with pytest.raises(SigningError):
            DigestSigner("")

    def test_signer_defaults_to_key(self):
        assert DigestSigner("0xABCD").signer == "0xABCD"
        assert DigestSigner("0xABCD", signer="Me").signer == "Me"

    @patch("debpkg.build.digest.shutil.which", return_value="/usr/bin/gpg")
    def test_command(self, mock_which):
        cmd = DigestSigner("0xABCD", gpg_home="/tmp/gnupg").command()

        assert cmd == [
            "/usr/bin/gpg", "--homedir", "/tmp/gnupg",
            "--batch", "--yes", "--quiet", "--armor", "--clearsign", "--default-key", "0xABCD",
        ]

    @patch("debpkg.build.digest.shutil.which", return_value=None)
    def test_missing_gpg(self, mock_which):
        with pytest.raises(SigningError):
            DigestSigner("0xABCD").command()

    @patch("debpkg.build.digest.shutil.which", return_value="/usr/bin/gpg")
    @patch("debpkg.build.digest.subprocess.run")
    def test_sign(self, mock_run, mock_which):
        mock_run.return_value = subprocess.CompletedProcess([], 0, stdout=SIGNED.encode(), stderr=b"")

        result = DigestSigner("0xABCD").sign("Version: 4\n")

        assert result == SIGNED
        _, kwargs = mock_run.call_args
        assert kwargs["input"] == b"Version: 4\n"

    @patch("debpkg.build.digest.shutil.which", return_value="/usr/bin/gpg")
    @patch("debpkg.build.digest.subprocess.run")
    def test_sign_failure(self, mock_run, mock_which):
        mock_run.return_value = subprocess.CompletedProcess([], 2, stdout=b"", stderr=b"no secret key")

        with pytest.raises(SigningError, match="no secret key"):
            DigestSigner("0xABCD").sign("Version: 4\n")

    @patch("debpkg.build.digest.shutil.which", return_value="/usr/bin/gpg")
    @patch("debpkg.build.digest.subprocess.run")
    def test_sign_without_armor(self, mock_run, mock_which):
        mock_run.return_value = subprocess.CompletedProcess([], 0, stdout=b"", stderr=b"")

        with pytest.raises(SigningError):
            DigestSigner("0xABCD").sign("Version: 4\n")

    @patch("debpkg.build.digest.shutil.which", return_value="/usr/bin/gpg")
    @patch("debpkg.build.digest.subprocess.run", side_effect=OSError("exec failed"))
    def test_sign_os_error(self, mock_run, mock_which):
        with pytest.raises(SigningError, match="exec failed"):
            DigestSigner("0xABCD").sign("Version: 4\n")
