"""dualsplit: 交错双通道时间序列拆分工具。"""
from ._version import __version__
from .config import SplitConfig
from .errors import DimensionalityError, DualSplitError, UnsupportedElementWidthError
from .model import Calibration, ElementWidth, OutputVolume, RawVolume
from .pipeline import split_channels

__all__ = [
    "__version__",
    "Calibration",
    "DimensionalityError",
    "DualSplitError",
    "ElementWidth",
    "OutputVolume",
    "RawVolume",
    "SplitConfig",
    "UnsupportedElementWidthError",
    "split_channels",
]
