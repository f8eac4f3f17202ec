"""just-run-it 环境变量配置管理。

环境变量:
    JRI_QUIET: 是否隐藏命令横幅和子进程输出
        - true/1/yes = 静默
        - false/0/no = 回显 (默认)

    JRI_COLOR: 是否为横幅和回显输出着色
        - true/1/yes = 安装了颜色库时着色 (默认)
        - false/0/no = 纯文本

    JRI_ENCODING: 子进程输出的解码编码（默认 utf-8，未知编码回退到 utf-8）

    JRI_PROPAGATE_SIGNALS: 子进程被 SIGINT/SIGTERM 终止时是否重新投递给本进程
        - true/1/yes = 重新投递 (默认)
        - false/0/no = 只报告

    JRI_LOG_DEBUG: 日志调试模式
        - true/1/yes = 开启 (DEBUG 日志输出到临时文件)
        - false/0/no = 关闭 (默认，INFO 日志输出到 stderr)

库 API 不读取这些变量，它们只提供命令行参数的默认值。
"""

from __future__ import annotations

import codecs
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

__all__ = ["Settings", "load_settings", "get_settings", "reload_settings"]

DEFAULT_ENCODING = "utf-8"


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """解析布尔值环境变量。"""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_encoding(value: str | None) -> str:
    """解析编码名称，未知编码回退到 utf-8。"""
    if not value or not value.strip():
        return DEFAULT_ENCODING
    try:
        return codecs.lookup(value.strip()).name
    except LookupError:
        return DEFAULT_ENCODING


@dataclass
class Settings:
    """just-run-it 命令行配置。

    Attributes:
        quiet: --quiet 的默认值
        color: --no-color 的默认值（False 表示纯文本输出）
        encoding: --encoding 的默认值
        propagate_signals: --no-propagate-signals 的默认值
        log_debug: 是否将 DEBUG 日志写入临时文件
        log_file: 日志文件路径（log_debug=True 时自动生成）
    """

    quiet: bool = False
    color: bool = True
    encoding: str = DEFAULT_ENCODING
    propagate_signals: bool = True
    log_debug: bool = False
    log_file: str | None = None

    def __repr__(self) -> str:
        return (
            f"Settings(quiet={self.quiet}, "
            f"color={self.color}, "
            f"encoding={self.encoding}, "
            f"propagate_signals={self.propagate_signals}, "
            f"log_debug={self.log_debug}, "
            f"log_file={self.log_file})"
        )


def _generate_log_file_path() -> str:
    """生成带时间戳的日志文件路径（位于系统临时目录）。"""
    log_dir = Path(tempfile.gettempdir()) / "just-run-it"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"jri_debug_{timestamp}.log"

    return str(log_file.resolve())


def load_settings() -> Settings:
    """从环境变量加载配置。"""
    log_debug = _parse_bool(os.environ.get("JRI_LOG_DEBUG"), default=False)
    log_file = _generate_log_file_path() if log_debug else None

    return Settings(
        quiet=_parse_bool(os.environ.get("JRI_QUIET"), default=False),
        color=_parse_bool(os.environ.get("JRI_COLOR"), default=True),
        encoding=_parse_encoding(os.environ.get("JRI_ENCODING")),
        propagate_signals=_parse_bool(
            os.environ.get("JRI_PROPAGATE_SIGNALS"), default=True
        ),
        log_debug=log_debug,
        log_file=log_file,
    )


# 全局配置实例（延迟加载）
_settings: Settings | None = None


def get_settings() -> Settings:
    """获取全局配置实例。"""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reload_settings() -> Settings:
    """重新加载配置（用于测试）。"""
    global _settings
    _settings = load_settings()
    return _settings
