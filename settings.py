import json
import logging
import os
from dataclasses import dataclass, field, fields
from typing import List

DEFAULT_CONFIG_PATH = "calculator.json"


@dataclass
class Settings:
    uri: str = "ws://localhost:3001"
    log_file: str = "calculator.log"
    log_level: str = "INFO"
    log_backup_count: int = 0
    prompt: str = ">> "
    command_prefixes: List[str] = field(default_factory=lambda: ['.', '。'])


def load_data(file_path: str) -> dict[str, any]:
    """
    从指定JSON文件加载数据

    Args:
        file_path: 数据文件路径

    Returns:
        加载的数据字典，文件不存在或无法解析时为空字典
    """
    if os.path.exists(file_path):
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logging.error(f"加载配置文件 {file_path} 时出错: {e}")
            return {}
        if not isinstance(data, dict):
            logging.error(f"配置文件 {file_path} 顶层必须是对象")
            return {}
        return data
    return {}


def load_settings(file_path: str = DEFAULT_CONFIG_PATH) -> Settings:
    """
    读取配置，缺失的项使用默认值，未知的项忽略
    """
    data = load_data(file_path)
    known = {f.name for f in fields(Settings)}
    settings = Settings(**{key: value for key, value in data.items() if key in known})

    if not is_log_level(settings.log_level):
        logging.error(f"配置文件 {file_path} 中的日志级别无效: {settings.log_level!r}，使用默认值")
        settings.log_level = Settings.log_level
    return settings


def is_log_level(value) -> bool:
    # 未知名称时 getLevelName 返回 "Level xxx" 字符串
    return isinstance(value, str) and isinstance(logging.getLevelName(value.upper()), int)
