"""
配置 Schema 定义

使用 Pydantic 定义 debpkg.yml 规格文件模型，支持验证和类型检查。
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, PrivateAttr, field_validator, model_validator

from ..build.control import Priority, VcsType
from ..build.control_archive import GENERATED_MEMBERS


class DescriptionModel(BaseModel):
    """描述信息模型"""
    short: str = Field("-", description="单行摘要")
    long: str = Field("-", description="多行长描述")

    model_config = {"extra": "forbid"}


class FileModel(BaseModel):
    """文件条目模型：file 与 content 二选一"""
    file: Optional[str] = Field(None, description="源文件路径（相对于配置文件所在目录）")
    content: Optional[str] = Field(None, description="内联文件内容")
    dest: str = Field(..., description="包内目标路径", min_length=1)
    conffile: bool = Field(False, description="是否作为配置文件写入 conffiles")

    model_config = {"extra": "forbid"}

    @field_validator('dest')
    @classmethod
    def validate_dest(cls, v: str) -> str:
        """验证目标路径"""
        if not v.strip().strip("/"):
            raise ValueError("目标路径不能为空")
        return v.strip()

    @model_validator(mode='after')
    def validate_source(self) -> 'FileModel':
        """file 与 content 必须且只能提供一个"""
        if (self.file is None) == (self.content is None):
            raise ValueError("file 与 content 必须且只能指定一个")
        return self


class DebPkgConfig(BaseModel):
    """debpkg 主配置模型

    这是整个规格文件的根模型，未给出的字段使用默认值。
    """

    # 身份
    name: str = Field("unknown", description="包名", min_length=1)
    version: str = Field("0.1.0+dev", description="版本号", min_length=1)
    architecture: str = Field("any", description="架构", min_length=1)
    maintainer: str = Field("anonymous", description="维护者")
    maintainer_email: str = Field("anon@foo.bar", description="维护者邮箱")
    homepage: str = Field("https://www.google.com", description="主页")
    section: str = Field("misc", description="分类")
    priority: Priority = Field(Priority.OPTIONAL, description="优先级")

    # 关系
    depends: str = Field("", description="Depends")
    recommends: str = Field("", description="Recommends")
    suggests: str = Field("", description="Suggests")
    conflicts: str = Field("", description="Conflicts")
    provides: str = Field("", description="Provides")
    replaces: str = Field("", description="Replaces")
    built_using: str = Field("", description="Built-Using")

    # 版本控制
    vcs_type: VcsType = Field(VcsType.UNSET, description="版本控制系统类型")
    vcs_url: str = Field("", description="版本库地址")
    vcs_browser: str = Field("", description="版本库浏览地址")

    description: DescriptionModel = Field(default_factory=DescriptionModel, description="描述信息")

    # 内容
    files: List[FileModel] = Field(default_factory=list, description="文件列表")
    directories: List[str] = Field(default_factory=list, description="递归添加的目录列表")
    emptydirs: List[str] = Field(default_factory=list, description="空目录列表")
    control_extra: Dict[str, str] = Field(
        default_factory=dict,
        description="控制附加成员：名称 -> 文件路径或内联内容（含换行即视为内容）",
    )

    model_config = {
        "extra": "forbid",  # 禁止额外字段
        "validate_assignment": True,
    }

    _base_dir: Optional[Path] = PrivateAttr(None)

    @property
    def base_dir(self) -> Optional[Path]:
        """规格文件所在目录，用于解析 directories 中的相对源路径"""
        return self._base_dir

    @field_validator('version', mode='before')
    @classmethod
    def coerce_version(cls, v: Any) -> Any:
        """YAML 中未加引号的 1.0 会被解析为数字"""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator('vcs_type', mode='before')
    @classmethod
    def normalize_vcs_type(cls, v: Any) -> Any:
        """版本控制类型不区分大小写，例如 git -> Git"""
        if isinstance(v, str):
            for member in VcsType:
                if member.value.lower() == v.strip().lower():
                    return member
        return v

    @field_validator('name', 'version', 'architecture')
    @classmethod
    def validate_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("不能为空")
        return v.strip()

    @field_validator('control_extra')
    @classmethod
    def validate_control_extra(cls, v: Dict[str, str]) -> Dict[str, str]:
        """附加成员名不能为空、不能包含路径分隔符，也不能覆盖 control / md5sums"""
        for name in v:
            if not name or "/" in name:
                raise ValueError(f"无效的附加成员名: '{name}'")
            if name in GENERATED_MEMBERS:
                raise ValueError(f"附加成员不能覆盖生成的 {name}")
        return v

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        data = self.model_dump(exclude_none=True)

        def convert_values(obj):
            if isinstance(obj, dict):
                return {k: convert_values(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [convert_values(item) for item in obj]
            elif isinstance(obj, Enum):
                return obj.value
            elif isinstance(obj, Path):
                return str(obj)
            else:
                return obj

        return convert_values(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DebPkgConfig':
        """从字典创建配置实例"""
        return cls.model_validate(data)

    def get_filename(self) -> str:
        """默认输出文件名"""
        return f"{self.name}-{self.version}_{self.architecture}.deb"
