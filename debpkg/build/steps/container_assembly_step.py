"""
容器组装步骤

将 debian-binary、两个归档与可选的 digests.asc 写入最终的 ar 容器。
"""

from typing import Tuple

from ...utils import format_size
from ...utils.logging import info, success, LogStage
from debpkg.build.ar import ContainerWriter
from debpkg.build.build_context import BuildContext
from .build_step import BuildStep


class ContainerAssemblyStep(BuildStep):
    """容器组装步骤"""

    def __init__(self):
        super().__init__("assemble", "组装 .deb 容器")

    def get_progress_range(self) -> Tuple[int, int]:
        return (70, 100)

    def execute(self, context: BuildContext) -> None:
        package = context.package
        info(f"写入: {context.output_path}", stage=LogStage.WRITE)
        context.report("组装文件", self.get_progress_range()[0], "写入 ar 容器...")

        writer = ContainerWriter()
        members = writer.members(
            package.control.archive.path,
            package.data.archive.path,
            digest=context.clearsigned,
        )
        writer.write(context.output_path, members)

        final_size = context.output_path.stat().st_size
        context.build_stats['output_size'] = final_size
        context.report("组装文件", self.get_progress_range()[1], f"完成，大小 {format_size(final_size)}")
        success(f"{context.output_path.name} 组装完成 - 大小: {format_size(final_size)}", stage=LogStage.WRITE)
