"""
构建管道模块

写出 .deb 时按固定顺序执行各步骤：校验 -> 控制归档 -> (签名) -> 容器组装。
"""

import time
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

from ..utils import format_size
from ..utils.logging import info, success, error, debug, LogStage
from .build_context import BuildContext, BuildError, DebPkgError, PackageIOError, ProgressCallback
from .steps.build_step import BuildStep
from .steps.verify_step import VerifyStep
from .steps.control_archive_step import ControlArchiveStep
from .steps.digest_signing_step import DigestSigningStep
from .steps.container_assembly_step import ContainerAssemblyStep

if TYPE_CHECKING:
    from .digest import DigestSigner
    from .package import Package


def default_steps() -> List[BuildStep]:
    return [
        VerifyStep(),
        ControlArchiveStep(),
        DigestSigningStep(),
        ContainerAssemblyStep(),
    ]


class BuildPipeline:
    """构建管道：依次执行步骤，把失败统一转换为 DebPkgError"""

    def __init__(self, steps: Optional[List[BuildStep]] = None):
        self._steps: List[BuildStep] = list(steps) if steps is not None else default_steps()

    def get_steps(self) -> List[BuildStep]:
        return list(self._steps)

    def execute(
        self,
        package: 'Package',
        output_path: Path,
        signer: Optional['DigestSigner'] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BuildContext:
        """对 package 执行全部步骤并写出 output_path

        Raises:
            ValidationError / PackageIOError / SigningError: 步骤抛出的包错误原样传播
            PackageIOError: 未包装的 OSError
            BuildError: 其它意外异常，原始异常保存在 __cause__
        """
        context = BuildContext(
            package=package,
            output_path=output_path,
            signer=signer,
            progress_callback=progress_callback,
        )
        stats = context.build_stats
        stats['start_time'] = time.time()
        info(f"开始构建: {output_path}", stage=LogStage.INIT)

        try:
            self._run(context)
        except DebPkgError as e:
            error(f"构建失败: {e}", stage=LogStage.DONE)
            raise
        except OSError as e:
            error(f"构建失败 (I/O): {e}", stage=LogStage.DONE)
            raise PackageIOError(str(e)) from e
        except Exception as e:
            error(f"构建失败 ({type(e).__name__}): {e}", stage=LogStage.DONE)
            raise BuildError(f"构建步骤异常: {e}") from e

        stats['end_time'] = time.time()
        success(
            f"构建成功: {output_path} (耗时 {stats['end_time'] - stats['start_time']:.1f}秒, "
            f"安装大小 {format_size(stats['installed_size'])})",
            stage=LogStage.DONE,
        )
        return context

    def _run(self, context: BuildContext) -> None:
        for step in self._steps:
            if step.should_run(context):
                info(f"执行步骤: {step.description}", stage=LogStage.INIT)
                step.execute(context)
            else:
                debug(f"跳过步骤: {step.description}", stage=LogStage.INIT)

    def validate_pipeline(self) -> List[str]:
        """检查各步骤的进度区间首尾相接并覆盖 0-100%

        Returns:
            List[str]: 发现的问题，空列表表示管道完整
        """
        if not self._steps:
            return ["管道为空"]

        problems = []
        cursor = 0
        for step in self._steps:
            low, high = step.get_progress_range()
            if low != cursor:
                problems.append(f"'{step.name}' 起始于 {low}%，上一步骤结束于 {cursor}%")
            if high <= low:
                problems.append(f"'{step.name}' 的进度区间为空: {low}%..{high}%")
            cursor = high

        if cursor != 100:
            problems.append(f"最后一个步骤结束于 {cursor}%，而不是 100%")
        return problems
