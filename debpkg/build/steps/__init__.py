"""写出 .deb 的构建步骤"""

from .build_step import BuildStep
from .verify_step import VerifyStep
from .control_archive_step import ControlArchiveStep
from .digest_signing_step import DigestSigningStep
from .container_assembly_step import ContainerAssemblyStep

__all__ = [
    "BuildStep",
    "VerifyStep",
    "ControlArchiveStep",
    "DigestSigningStep",
    "ContainerAssemblyStep",
]
