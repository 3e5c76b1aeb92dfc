"""配置和 Schema 模块

提供运行配置模型以及 YAML 配置文件的加载、验证和保存功能。
"""

from .schema import (
    RunConfiguration,
    CodecOptions,
    ToolsModel,
    ModificationTime,
    DeflateHint,
    RunMode,
    DEFAULT_INCLUDES,
    DEFAULT_STRIP_CODE_ATTRIBUTES,
    build_configuration,
)
from .loader import (
    ConfigLoader,
    ConfigValidationError,
    ConfigError,
    load_config,
    validate_config,
    save_config,
    config_loader
)

__all__ = [
    # 模型
    "RunConfiguration",
    "CodecOptions",
    "ToolsModel",
    "ModificationTime",
    "DeflateHint",
    "RunMode",
    "DEFAULT_INCLUDES",
    "DEFAULT_STRIP_CODE_ATTRIBUTES",
    "build_configuration",
    "ConfigLoader",

    # 异常类
    "ConfigError",
    "ConfigValidationError",

    # 便捷函数
    "load_config",
    "validate_config",
    "save_config",

    # 单例
    "config_loader",
]
