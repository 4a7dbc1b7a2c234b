"""
控制信息校验步骤

在任何归档收尾之前校验必填字段，失败时不会产生输出文件。
"""

from typing import Tuple

from ...utils.logging import debug, LogStage
from debpkg.build.build_context import BuildContext
from .build_step import BuildStep


class VerifyStep(BuildStep):
    """控制信息校验步骤"""

    def __init__(self):
        super().__init__("verify", "校验控制信息")

    def get_progress_range(self) -> Tuple[int, int]:
        return (0, 10)

    def execute(self, context: BuildContext) -> None:
        metadata = context.package.metadata
        metadata.verify()
        debug(
            f"control: name={metadata.name} version={metadata.version} arch={metadata.architecture}",
            stage=LogStage.CONTROL,
        )
        context.report("校验控制信息", self.get_progress_range()[1], "控制信息有效")
