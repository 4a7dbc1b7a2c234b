"""
控制归档步骤

渲染 conffiles / control / md5sums 与附加成员，并关闭 control 与 data 归档。
"""

from typing import Tuple

from ...utils import format_size
from ...utils.logging import info, success, LogStage
from debpkg.build.build_context import BuildContext
from .build_step import BuildStep


class ControlArchiveStep(BuildStep):
    """控制归档步骤"""

    def __init__(self):
        super().__init__("control", "生成 control.tar.gz")

    def get_progress_range(self) -> Tuple[int, int]:
        return (10, 50)

    def execute(self, context: BuildContext) -> None:
        package = context.package
        progress_start, progress_end = self.get_progress_range()
        context.report("生成控制归档", progress_start, "写入 control / md5sums ...")

        installed_size = package.data.written
        info(f"文件数量: {len(package.data.manifest)}  内容大小: {format_size(installed_size)}",
             stage=LogStage.CONTROL)

        package.control.finalize(package.data)

        context.build_stats['installed_size'] = installed_size
        context.build_stats['control_size'] = package.control.archive.size()
        context.build_stats['data_size'] = package.data.archive.size()

        context.report("生成控制归档", progress_end, "归档已关闭")
        success(
            f"control.tar.gz {format_size(context.build_stats['control_size'])}, "
            f"data.tar.gz {format_size(context.build_stats['data_size'])}",
            stage=LogStage.CONTROL,
        )
