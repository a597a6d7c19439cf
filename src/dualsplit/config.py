# src/dualsplit/config.py
"""
拆分参数。SplitConfig 是不可变的，在入口处构造一次后传入 pipeline，
不读取任何全局状态。

也支持 JSON 配置文件 (dualsplit_config.json)，可用 `dualsplit --init` 生成。
"""
import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from typing import Optional, Tuple

from ._version import __version__

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "dualsplit_config.json"

DEFAULT_TARGET_WIDTH = 750
DEFAULT_TARGET_HEIGHT = 750


@dataclass(frozen=True)
class SplitConfig:
    duplicate_input: bool = True
    target_width: int = DEFAULT_TARGET_WIDTH
    target_height: int = DEFAULT_TARGET_HEIGHT
    resize: bool = True
    flip_horizontal: bool = True
    reverse_depth_order: bool = True
    green_name: str = "Green"
    red_name: str = "Red"

    def __post_init__(self):
        for name in ("target_width", "target_height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        if self.green_name == self.red_name:
            raise ValueError(f"Channel names must differ, both are '{self.green_name}'")

    def target_size(self, src_width: int, src_height: int) -> Tuple[int, int]:
        """返回实际输出尺寸 (width, height)。resize=False 时保持原尺寸。"""
        if not self.resize:
            return src_width, src_height
        return self.target_width, self.target_height


def default_config_dict() -> dict:
    return {
        "version": __version__,
        "processing": asdict(SplitConfig()),
    }


def config_from_dict(data: dict) -> SplitConfig:
    """从配置字典构造 SplitConfig。未知字段会被忽略并记录警告。"""
    section = data.get("processing", {})
    if not isinstance(section, dict):
        raise ValueError("'processing' section must be a JSON object")

    known = {f.name: f for f in fields(SplitConfig)}
    kwargs = {}
    for key, value in section.items():
        if key not in known:
            logger.warning(f"Ignoring unknown config option: {key}")
            continue
        expected = known[key].type
        if expected in (bool, "bool") and not isinstance(value, bool):
            raise ValueError(f"Config option '{key}' must be true/false, got {value!r}")
        if expected in (str, "str") and not isinstance(value, str):
            raise ValueError(f"Config option '{key}' must be a string, got {value!r}")
        kwargs[key] = value

    return SplitConfig(**kwargs)


def load_config(path: Optional[str] = None) -> SplitConfig:
    """
    读取配置文件。

    Args:
        path (str, optional): 配置文件路径。缺省时查找当前目录下的 dualsplit_config.json，
                              不存在则返回默认配置。
    """
    if path is None:
        candidate = os.path.join(os.getcwd(), CONFIG_FILENAME)
        if not os.path.exists(candidate):
            logger.debug("No config file found, using defaults")
            return SplitConfig()
        path = candidate

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Invalid config file {path}: top level must be a JSON object")

    file_version = data.get("version")
    if file_version and file_version != __version__:
        logger.info(f"Config written by dualsplit {file_version}, running {__version__}")

    logger.debug(f"Loaded config from {path}")
    return config_from_dict(data)


def write_default_config(path: str) -> str:
    """生成默认配置文件。已存在时不覆盖。"""
    if os.path.exists(path):
        raise FileExistsError(f"Config file already exists: {path}")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(default_config_dict(), f, indent=4)
    return path
