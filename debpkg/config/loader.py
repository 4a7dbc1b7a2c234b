"""
配置加载器

负责从 YAML 规格文件加载配置、进行验证，并把配置应用到 Package。
模板变量（{{.BINDIR}} 等）在 YAML 解析之前对原始文本展开。
"""

import copy
import io
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ..build.package import Package
from ..utils.logging import debug, info, LogStage
from .errors import ConfigError, ConfigValidationError
from .schema import DebPkgConfig
from .variables import Variables


def is_inline_content(value: str) -> bool:
    """control_extra 的值包含换行时视为内联内容，否则视为文件路径"""
    return "\n" in value


class ConfigLoader:
    """配置加载器

    Args:
        variables: 模板变量表，None 时使用默认安装路径变量
    """

    def __init__(self, variables: Optional[Variables] = None):
        self.variables = variables or Variables()
        self.yaml = YAML()
        self.yaml.preserve_quotes = True
        self.yaml.width = 4096  # 避免长行自动换行

    def load_from_file(self, config_path: Union[str, Path]) -> DebPkgConfig:
        """从文件加载配置

        Args:
            config_path: 规格文件路径

        Returns:
            DebPkgConfig: 验证后的配置实例

        Raises:
            ConfigError: 配置加载或验证错误
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigError(f"配置文件不存在: {config_path}")

        if not config_path.is_file():
            raise ConfigError(f"配置路径不是文件: {config_path}")

        if config_path.suffix.lower() not in ['.yaml', '.yml']:
            raise ConfigError(f"配置文件必须是 .yaml 或 .yml 格式: {config_path}")

        try:
            text = config_path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"文件读取错误: {e}") from e

        debug(f"加载规格文件: {config_path}", stage=LogStage.CONFIG)
        return self.load_from_string(text, config_path.resolve().parent)

    def load_from_string(self, text: str, base_path: Optional[Path] = None) -> DebPkgConfig:
        """从 YAML 文本加载配置

        Args:
            text: YAML 文本
            base_path: 相对路径的基准目录，None 时使用当前目录
        """
        expanded = self.variables.expand(text)

        try:
            raw_data = self.yaml.load(expanded)
        except YAMLError as e:
            raise ConfigError(f"YAML 解析错误: {e}") from e

        if raw_data is None:
            raise ConfigError("配置文件为空")

        if not isinstance(raw_data, dict):
            raise ConfigError("配置文件根级别必须是对象/字典格式")

        return self.load_from_dict(raw_data, base_path)

    def load_from_dict(self, data: Dict[str, Any], base_path: Optional[Path] = None) -> DebPkgConfig:
        """从字典加载配置

        Raises:
            ConfigValidationError: 配置验证错误
        """
        base_path = Path(base_path) if base_path else Path.cwd()

        # 创建数据副本避免修改原数据
        data = copy.deepcopy(dict(data))
        self._resolve_relative_paths(data, base_path)

        try:
            config = DebPkgConfig.from_dict(data)
        except ValidationError as e:
            errors = [error for error in e.errors()]
            raise ConfigValidationError("配置验证失败", errors) from e

        config._base_dir = base_path
        return config

    def save_to_file(self, config: DebPkgConfig, output_path: Union[str, Path]) -> None:
        """保存配置到文件

        Raises:
            ConfigError: 保存错误
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            buffer = io.StringIO()
            self.yaml.dump(config.to_dict(), buffer)
            output_path.write_text(buffer.getvalue(), encoding='utf-8')
        except (OSError, YAMLError) as e:
            raise ConfigError(f"保存配置文件失败: {e}") from e

    def validate_file(self, config_path: Union[str, Path]) -> List[Dict[str, Any]]:
        """验证配置文件并返回错误列表

        除 schema 校验外，还会检查引用的源文件与目录是否存在。

        Returns:
            List[Dict]: 错误列表，空列表表示验证通过
        """
        try:
            config = self.load_from_file(config_path)
        except ConfigValidationError as e:
            return e.errors
        except ConfigError as e:
            return [{
                'loc': [],
                'msg': str(e),
                'type': 'config_error'
            }]
        return self.check_sources(config)

    def check_sources(self, config: DebPkgConfig) -> List[Dict[str, Any]]:
        """检查源文件与目录是否存在"""
        errors: List[Dict[str, Any]] = []

        for index, item in enumerate(config.files):
            if item.file is not None and not Path(item.file).is_file():
                errors.append({
                    'loc': ['files', index, 'file'],
                    'msg': '源文件不存在',
                    'input': item.file,
                    'type': 'missing_source',
                })

        for index, directory in enumerate(config.directories):
            if not self.directory_source(config, directory).is_dir():
                errors.append({
                    'loc': ['directories', index],
                    'msg': '源目录不存在',
                    'input': directory,
                    'type': 'missing_source',
                })

        for name, value in config.control_extra.items():
            if not is_inline_content(value) and not Path(value).is_file():
                errors.append({
                    'loc': ['control_extra', name],
                    'msg': '附加控制文件不存在',
                    'input': value,
                    'type': 'missing_source',
                })

        return errors

    @staticmethod
    def directory_source(config: DebPkgConfig, directory: str) -> Path:
        """directories 条目的源路径：相对路径基于规格文件所在目录"""
        path = Path(directory)
        if path.is_absolute() or config.base_dir is None:
            return path
        return config.base_dir / path

    def apply(self, config: DebPkgConfig, package: Package) -> Package:
        """把配置应用到包

        顺序：控制信息、files、directories、emptydirs、control_extra。

        Raises:
            DebPkgError: 任意 Package 操作失败（包随之进入 ERRORED 状态）
        """
        package.set_name(config.name)
        package.set_version(config.version)
        package.set_architecture(config.architecture)
        package.set_maintainer(config.maintainer)
        package.set_maintainer_email(config.maintainer_email)
        package.set_homepage(config.homepage)
        package.set_section(config.section)
        package.set_priority(config.priority)
        package.set_short_description(config.description.short)
        package.set_description(config.description.long)
        package.set_depends(config.depends)
        package.set_recommends(config.recommends)
        package.set_suggests(config.suggests)
        package.set_conflicts(config.conflicts)
        package.set_provides(config.provides)
        package.set_replaces(config.replaces)
        package.set_built_using(config.built_using)
        package.set_vcs_type(config.vcs_type)
        package.set_vcs_url(config.vcs_url)
        package.set_vcs_browser(config.vcs_browser)

        for item in config.files:
            if item.file is not None:
                package.add_file(item.file, item.dest, conffile=item.conffile)
            else:
                package.add_file_string(item.content or "", item.dest, conffile=item.conffile)

        for directory in config.directories:
            package.add_directory(self.directory_source(config, directory), directory)

        for directory in config.emptydirs:
            package.add_empty_directory(directory)

        for name, value in config.control_extra.items():
            if is_inline_content(value):
                package.add_control_extra_string(name, value)
            else:
                package.add_control_extra(name, value)

        info(
            f"已应用配置: {config.name} {config.version} ({len(config.files)} 个文件, "
            f"{len(config.directories)} 个目录)",
            stage=LogStage.CONFIG,
        )
        return package

    def _resolve_relative_paths(self, data: Dict[str, Any], base_path: Path) -> None:
        """解析配置中的相对源路径（files[].file 与 control_extra 中的文件路径）"""
        files = data.get('files')
        if isinstance(files, list):
            for item in files:
                if isinstance(item, dict) and isinstance(item.get('file'), str):
                    item['file'] = self._resolve(item['file'], base_path)

        extras = data.get('control_extra')
        if isinstance(extras, dict):
            for name, value in extras.items():
                if isinstance(value, str) and value and not is_inline_content(value):
                    extras[name] = self._resolve(value, base_path)

    @staticmethod
    def _resolve(path_value: str, base_path: Path) -> str:
        path = Path(path_value)
        if path.is_absolute():
            return path_value
        return str((base_path / path).resolve())


# 全局加载器实例
config_loader = ConfigLoader()


def load_config(config_path: Union[str, Path]) -> DebPkgConfig:
    """便捷函数：加载配置文件"""
    return config_loader.load_from_file(config_path)


def validate_config(config_path: Union[str, Path]) -> List[Dict[str, Any]]:
    """便捷函数：验证配置文件"""
    return config_loader.validate_file(config_path)


def save_config(config: DebPkgConfig, output_path: Union[str, Path]) -> None:
    """便捷函数：保存配置文件"""
    config_loader.save_to_file(config, output_path)


def apply_config(config: DebPkgConfig, package: Package) -> Package:
    """便捷函数：把配置应用到包"""
    return config_loader.apply(config, package)
