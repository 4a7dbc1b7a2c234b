"""
控制归档 (control.tar.gz)

写入顺序：conffiles、control、md5sums，随后是附加成员（维护者脚本等）。
"""

from pathlib import Path
from typing import Dict, List, Union

from ..utils.logging import debug, LogStage
from ..utils.paths import to_posix
from .control import ControlMetadata
from .data import DataArchiveBuilder
from .targzip import FILE_MODE, TarGzipWriter
from .build_context import PackageIOError, ValidationError

CONFFILES = "conffiles"

# 由构建器生成的成员，附加成员不能使用这些名字
GENERATED_MEMBERS = ("control", "md5sums")

# 需要可执行权限的维护者脚本
MAINTAINER_SCRIPTS = ("preinst", "postinst", "prerm", "postrm", "config")
SCRIPT_MODE = 0o755


class ControlArchiveBuilder:
    """control.tar.gz 构建器"""

    def __init__(self, archive: TarGzipWriter, metadata: ControlMetadata):
        self.archive = archive
        self.metadata = metadata
        self.extras: Dict[str, bytes] = {}
        self.conffiles: List[str] = []

    def mark_config_file(self, dest: str) -> None:
        """标记配置文件（写入 conffiles，使用绝对路径）"""
        path = "/" + to_posix(dest).lstrip("/")
        if path not in self.conffiles:
            self.conffiles.append(path)

    def add_control_extra_string(self, name: str, content: Union[str, bytes]) -> None:
        """添加附加成员，CRLF 统一为 LF

        Raises:
            ValidationError: 成员名为空、包含路径分隔符或与生成的成员重名
        """
        if not name or "/" in name:
            raise ValidationError(f"无效的附加成员名: '{name}'")
        if name in GENERATED_MEMBERS:
            raise ValidationError(f"附加成员不能覆盖生成的 {name}")
        if isinstance(content, bytes):
            content = content.decode('utf-8')
        content = content.replace("\r\n", "\n")
        self.extras[name] = content.encode('utf-8')

    def add_control_extra(self, name: str, filename: Union[str, Path]) -> None:
        """从文件添加附加成员"""
        try:
            content = Path(filename).read_text(encoding='utf-8')
        except OSError as e:
            raise PackageIOError(f"无法读取附加控制文件 {filename}: {e}") from e
        self.add_control_extra_string(name, content)

    def has_custom_conffiles(self) -> bool:
        return CONFFILES in self.extras

    def render_conffiles(self) -> str:
        return "".join(f"{path}\n" for path in self.conffiles)

    def finalize(self, data: DataArchiveBuilder) -> None:
        """写入全部控制成员，然后依次关闭 control 与 data 归档

        调用方提供的 conffiles 会完全取代自动生成的内容。
        """
        if self.has_custom_conffiles():
            self.archive.add_bytes(CONFFILES, self.extras[CONFFILES])
            debug("conffiles: 使用自定义内容", stage=LogStage.CONTROL)
        else:
            self.archive.add_bytes(CONFFILES, self.render_conffiles().encode('utf-8'))
            debug(f"conffiles: {len(self.conffiles)} 个配置文件", stage=LogStage.CONTROL)

        control = self.metadata.render(data.written)
        self.archive.add_bytes("control", control.encode('utf-8'))
        self.archive.add_bytes("md5sums", data.manifest.md5sums().encode('utf-8'))

        for name, content in self.extras.items():
            if name == CONFFILES:
                continue
            mode = SCRIPT_MODE if name in MAINTAINER_SCRIPTS else FILE_MODE
            self.archive.add_bytes(name, content, mode=mode)
            debug(f"附加成员: {name} ({len(content)} bytes, mode {mode:o})", stage=LogStage.CONTROL)

        self.archive.close()
        data.close()
