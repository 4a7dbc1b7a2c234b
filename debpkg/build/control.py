"""
控制信息 (control 文件)

保存包的身份与关系字段，负责校验并按固定字段顺序渲染 control 文本。
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .build_context import ValidationError


class Priority(str, Enum):
    """包优先级枚举，UNSET 时不输出 Priority 字段"""
    UNSET = ""
    REQUIRED = "required"
    IMPORTANT = "important"
    STANDARD = "standard"
    OPTIONAL = "optional"


class VcsType(str, Enum):
    """版本控制系统类型，UNSET 时不输出 Vcs-<Type> 字段"""
    UNSET = ""
    ARCH = "Arch"
    BAZAAR = "Bzr"
    DARCS = "Darcs"
    GIT = "Git"
    MERCURIAL = "Hg"
    MONOTONE = "Mtn"
    SUBVERSION = "Svn"


@dataclass
class PackageVersion:
    """版本号：完整字符串优先，否则由 major.minor.patch 生成"""
    full: str = ""
    major: Optional[int] = None
    minor: Optional[int] = None
    patch: Optional[int] = None

    def is_set(self) -> bool:
        return bool(self.full) or any(v is not None for v in (self.major, self.minor, self.patch))

    def __str__(self) -> str:
        if self.full:
            return self.full
        return "%d.%d.%d" % (self.major or 0, self.minor or 0, self.patch or 0)


def fold_description(text: str) -> str:
    """按 Debian 续行规则折叠长描述

    每一行前加一个空格（空行变为只含一个空格的行），整体以换行结尾。
    """
    if not text:
        return ""
    text = text.replace("\r\n", "\n").rstrip("\n")
    return " " + text.replace("\n", "\n ") + "\n"


def installed_size_kib(size_bytes: int) -> int:
    """字节数向上取整为 KiB"""
    return int(math.ceil(size_bytes / 1024))


@dataclass
class ControlMetadata:
    """control 文件字段集合"""
    name: str = ""
    version: PackageVersion = None  # type: ignore[assignment]
    architecture: str = ""
    maintainer: str = ""
    maintainer_email: str = ""
    homepage: str = ""
    section: str = ""
    priority: Priority = Priority.UNSET
    short_description: str = ""
    description: str = ""  # 已折叠的长描述
    vcs_type: VcsType = VcsType.UNSET
    vcs_url: str = ""
    vcs_browser: str = ""
    built_using: str = ""
    depends: str = ""
    recommends: str = ""
    suggests: str = ""
    conflicts: str = ""
    provides: str = ""
    replaces: str = ""

    def __post_init__(self):
        if self.version is None:
            self.version = PackageVersion()

    def set_description(self, text: str) -> None:
        self.description = fold_description(text)

    def verify(self) -> None:
        """校验必填字段

        Raises:
            ValidationError: 包名、架构或版本缺失
        """
        if not self.name.strip():
            raise ValidationError("empty package name")
        if not self.architecture.strip():
            raise ValidationError("empty architecture")
        if not self.version.is_set():
            raise ValidationError("empty package version")

    def render(self, installed_size: int = 0) -> str:
        """渲染 control 文本

        Args:
            installed_size: data 归档未压缩内容字节数

        Returns:
            str: control 文件内容
        """
        lines: List[str] = [
            f"Package: {self.name}",
            f"Version: {self.version}",
            f"Architecture: {self.architecture}",
            f"Maintainer: {self.maintainer} <{self.maintainer_email}>",
            f"Installed-Size: {installed_size_kib(installed_size)}",
        ]

        if self.section:
            lines.append(f"Section: {self.section}")
        if self.priority != Priority.UNSET:
            lines.append(f"Priority: {self.priority.value}")
        if self.homepage:
            lines.append(f"Homepage: {self.homepage}")
        if self.vcs_type != VcsType.UNSET and self.vcs_url:
            lines.append(f"Vcs-{self.vcs_type.value}: {self.vcs_url}")
        if self.vcs_browser:
            lines.append(f"Vcs-Browser: {self.vcs_browser}")
        if self.built_using:
            lines.append(f"Built-Using: {self.built_using}")

        # 关系字段
        for key, value in (
            ("Depends", self.depends),
            ("Recommends", self.recommends),
            ("Suggests", self.suggests),
            ("Conflicts", self.conflicts),
            ("Provides", self.provides),
            ("Replaces", self.replaces),
        ):
            if value:
                lines.append(f"{key}: {value}")

        lines.append(f"Description: {self.short_description}")
        return "\n".join(lines) + "\n" + self.description

    def __str__(self) -> str:
        return self.render(0)
