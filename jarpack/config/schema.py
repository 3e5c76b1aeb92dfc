"""
配置 Schema 定义

使用 Pydantic 定义一次运行的不可变配置：扫描范围、运行模式、Pack200 编解码参数
以及外部工具位置。
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


DEFAULT_INCLUDES = ["**/*.?ar"]

DEFAULT_STRIP_CODE_ATTRIBUTES = [
    "SourceFile",
    "LineNumberTable",
    "LocalVariableTable",
    "Deprecated",
]


class ModificationTime(str, Enum):
    """修改时间策略枚举"""
    LATEST = "latest"
    KEEP = "keep"


class DeflateHint(str, Enum):
    """压缩提示枚举"""
    TRUE = "true"
    FALSE = "false"
    KEEP = "keep"


class RunMode(str, Enum):
    """运行模式枚举"""
    PACK = "pack"
    NORMALIZE = "normalize"


def _split_patterns(value: Any) -> List[str]:
    """把逗号分隔的字符串或列表统一展开为模式列表"""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]

    patterns: List[str] = []
    for item in value:
        for part in str(item).split(','):
            part = part.strip()
            if part and part not in patterns:
                patterns.append(part)
    return patterns


class CodecOptions(BaseModel):
    """Pack200 编解码参数模型"""
    effort: int = Field(7, description="压缩力度 (0-9)", ge=0, le=9)
    segment_limit: int = Field(-1, description="段大小上限（字节），-1 表示不限制", ge=-1)
    keep_file_order: bool = Field(False, description="是否保持归档内文件顺序")
    modification_time: ModificationTime = Field(
        ModificationTime.LATEST,
        description="修改时间策略（latest 或 keep）"
    )
    deflate_hint: DeflateHint = Field(DeflateHint.FALSE, description="deflate 提示（true/false/keep）")
    strip_code_attributes: List[str] = Field(
        default_factory=lambda: list(DEFAULT_STRIP_CODE_ATTRIBUTES),
        description="需要剥离的代码属性名称"
    )
    fail_on_unknown_attributes: bool = Field(True, description="遇到未知属性时是否报错")

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @field_validator('deflate_hint', mode='before')
    @classmethod
    def validate_deflate_hint(cls, v: Any) -> Any:
        """兼容布尔值写法"""
        if isinstance(v, bool):
            return DeflateHint.TRUE if v else DeflateHint.FALSE
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator('modification_time', mode='before')
    @classmethod
    def validate_modification_time(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator('strip_code_attributes', mode='before')
    @classmethod
    def validate_strip_attributes(cls, v: Any) -> List[str]:
        """去除空白和重复项"""
        return _split_patterns(v)

    @field_validator('strip_code_attributes')
    @classmethod
    def validate_attribute_names(cls, v: List[str]) -> List[str]:
        for name in v:
            if not name.isidentifier():
                raise ValueError(f"属性名称无效: {name}")
        return v


class ToolsModel(BaseModel):
    """外部工具配置模型"""
    pack200: Optional[Path] = Field(None, description="pack200 可执行文件路径")
    unpack200: Optional[Path] = Field(None, description="unpack200 可执行文件路径")
    java_home: Optional[Path] = Field(None, description="JDK 目录，在其 bin/ 下查找工具")
    timeout_sec: Optional[int] = Field(None, description="单次工具调用超时时间（秒）", ge=1)

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }


class ConfigModel(BaseModel):
    """配置元信息模型"""
    version: int = Field(1, description="配置 schema 版本", ge=1)

    model_config = {"frozen": True}

    @field_validator('version')
    @classmethod
    def validate_config_version(cls, v: int) -> int:
        """验证配置版本"""
        SUPPORTED_VERSIONS = [1]
        if v not in SUPPORTED_VERSIONS:
            raise ValueError(f"不支持的配置版本 {v}，支持的版本: {SUPPORTED_VERSIONS}")
        return v


class RunConfiguration(BaseModel):
    """一次运行的主配置模型

    构造后只读；输出目录通过 resolved() 在处理任何文件之前解析一次。
    """

    config: ConfigModel = Field(default_factory=ConfigModel, description="配置元信息")

    source_root: Path = Field(..., description="要扫描的归档目录")
    output_root: Optional[Path] = Field(None, description="输出目录，默认与归档目录相同")

    includes: List[str] = Field(
        default_factory=lambda: list(DEFAULT_INCLUDES),
        description="包含模式列表（Ant 风格）"
    )
    excludes: List[str] = Field(default_factory=list, description="排除模式列表（Ant 风格）")
    use_default_excludes: bool = Field(True, description="是否启用默认排除规则（版本控制目录等）")

    normalize_only: bool = Field(False, description="仅规范化（pack 后立即 unpack，用于签名前）")
    signed: Optional[str] = Field(None, description="签名标识，未设置时规范化模式不执行任何操作")
    compress: bool = Field(True, description="是否将 .pack 进一步 gzip 压缩")

    codec: CodecOptions = Field(default_factory=CodecOptions, description="Pack200 参数")
    tools: ToolsModel = Field(default_factory=ToolsModel, description="外部工具配置")

    model_config = {
        "extra": "forbid",
        "frozen": True,
        "str_strip_whitespace": True,
    }

    @field_validator('includes', mode='before')
    @classmethod
    def validate_includes(cls, v: Any) -> List[str]:
        """未设置包含模式时使用默认值"""
        patterns = _split_patterns(v)
        return patterns or list(DEFAULT_INCLUDES)

    @field_validator('excludes', mode='before')
    @classmethod
    def validate_excludes(cls, v: Any) -> List[str]:
        return _split_patterns(v)

    @model_validator(mode='after')
    def validate_roots(self) -> 'RunConfiguration':
        """输出目录不能是文件"""
        if self.output_root is not None and self.output_root.is_file():
            raise ValueError(f"输出路径是文件而不是目录: {self.output_root}")
        return self

    @property
    def normalization_requested(self) -> bool:
        """规范化模式且已设置签名标识"""
        return self.normalize_only and bool(self.signed and self.signed.strip())

    @property
    def mode(self) -> RunMode:
        return RunMode.NORMALIZE if self.normalize_only else RunMode.PACK

    def resolved(self) -> 'RunConfiguration':
        """返回绝对路径化、输出目录已确定的配置副本"""
        source_root = self.source_root.expanduser().resolve()
        output_root = (self.output_root or self.source_root).expanduser().resolve()
        return self.model_copy(update={
            'source_root': source_root,
            'output_root': output_root,
        })

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
            return obj

        return convert_values(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RunConfiguration':
        """从字典创建配置实例"""
        return cls.model_validate(data)

    def with_overrides(self, **overrides: Any) -> 'RunConfiguration':
        """合并覆盖项（值为 None 的项忽略）并重新验证"""
        data = self.model_dump()
        codec = dict(data.get('codec') or {})
        tools = dict(data.get('tools') or {})

        for key, value in overrides.items():
            if value is None:
                continue
            if key in CodecOptions.model_fields:
                codec[key] = value
            elif key in ToolsModel.model_fields:
                tools[key] = value
            else:
                data[key] = value

        data['codec'] = codec
        data['tools'] = tools
        return self.model_validate(data)


def build_configuration(source_root: Union[str, Path], **kwargs: Any) -> RunConfiguration:
    """便捷函数：用关键字参数构造运行配置，编解码与工具参数可直接平铺传入"""
    codec_fields = {k: kwargs.pop(k) for k in list(kwargs) if k in CodecOptions.model_fields}
    tool_fields = {k: kwargs.pop(k) for k in list(kwargs) if k in ToolsModel.model_fields}
    return RunConfiguration(
        source_root=Path(source_root),
        codec=CodecOptions(**codec_fields),
        tools=ToolsModel(**tool_fields),
        **kwargs,
    )
