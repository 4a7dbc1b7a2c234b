"""
摘要签名步骤

仅在提供签名器时执行：对三个成员的最终字节计算摘要并 clear-sign。
"""

from typing import Tuple

from ...utils.logging import info, success, debug, LogStage
from debpkg.build.ar import ContainerWriter
from debpkg.build.build_context import BuildContext
from debpkg.build.digest import Digest
from .build_step import BuildStep


class DigestSigningStep(BuildStep):
    """摘要签名步骤"""

    def __init__(self):
        super().__init__("sign", "生成并签名 digests.asc")

    def should_run(self, context: BuildContext) -> bool:
        return context.signer is not None

    def get_progress_range(self) -> Tuple[int, int]:
        return (50, 70)

    def execute(self, context: BuildContext) -> None:
        package = context.package
        signer = context.signer
        assert signer is not None

        context.report("签名", self.get_progress_range()[0], "计算摘要...")
        members = ContainerWriter.members(package.control.archive.path, package.data.archive.path)
        context.digest = Digest.from_members(members, signer=signer.signer)
        plaintext = context.digest.plaintext()
        debug(f"摘要文本:\n{plaintext}", stage=LogStage.DIGEST)

        info(f"使用密钥 {signer.key_id} 签名", stage=LogStage.SIGN)
        context.clearsigned = signer.sign(plaintext)

        context.report("签名", self.get_progress_range()[1], "签名完成")
        success("digests.asc 已生成", stage=LogStage.SIGN)
