# src/dualsplit/model.py
"""
数据模型：输入的原始 Hyperstack、输出的单通道 Volume 以及物理标定信息。

像素数据统一用 numpy 数组保存：
    - RawVolume.data 维度为 (T, Z, C, Y, X)，与 ImageJ 的 TZCYX 顺序一致
    - OutputVolume.planes 为按深度排列的 2D 平面列表，每个平面独占自己的缓冲区
"""
import copy
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np

from .errors import UnsupportedElementWidthError


class ElementWidth(Enum):
    """支持的像素位深。在校验阶段解析一次，之后不再按像素分派。"""

    EIGHT_BIT = 8
    SIXTEEN_BIT = 16

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(np.uint8) if self is ElementWidth.EIGHT_BIT else np.dtype(np.uint16)

    @classmethod
    def from_dtype(cls, dtype) -> "ElementWidth":
        """按精确的 dtype 解析：只接受 uint8 / uint16，有符号、浮点、bool 一律拒绝。"""
        dtype = np.dtype(dtype)
        for member in cls:
            if dtype.kind == "u" and dtype.itemsize == member.dtype.itemsize:
                return member
        raise UnsupportedElementWidthError(bit_depth_of(dtype), dtype=dtype.name)


def bit_depth_of(dtype) -> int:
    """按 ImageJ 的习惯把 numpy dtype 映射为位深 (uint8 -> 8, uint16 -> 16, float32 -> 32)。"""
    return np.dtype(dtype).itemsize * 8


@dataclass
class Calibration:
    """物理标定：像素尺寸、单位、原点以及时间间隔。"""

    pixel_width: float = 1.0
    pixel_height: float = 1.0
    pixel_depth: float = 1.0
    unit: str = "pixel"
    x_origin: float = 0.0
    y_origin: float = 0.0
    z_origin: float = 0.0
    frame_interval: float = 0.0
    time_unit: str = "sec"

    def copy(self) -> "Calibration":
        # 每个输出 Volume 都必须持有自己的实例
        return replace(self)

    def scaled(self, sx: float, sy: float) -> "Calibration":
        return replace(self, pixel_width=self.pixel_width * sx, pixel_height=self.pixel_height * sy)


class RawVolume:
    """
    输入的 Hyperstack (C, Z, T 三个维度)。

    Args:
        data (np.ndarray): 5D 数组 (T, Z, C, Y, X)。
        calibration (Calibration, optional): 物理标定。缺省为未标定。
        info (str, optional): ImageJ 的 "Info" 元数据文本。
        labels (Sequence[str], optional): 每个平面的标签，按 stack index 顺序排列。
        title (str, optional): 图像标题。
    """

    def __init__(self,
                 data: np.ndarray,
                 calibration: Optional[Calibration] = None,
                 info: Optional[str] = None,
                 labels: Optional[Sequence[Optional[str]]] = None,
                 title: str = "Untitled"):
        if data.ndim != 5:
            raise ValueError(f"RawVolume expects a 5D (T, Z, C, Y, X) array, got shape {data.shape}")
        self.data: Optional[np.ndarray] = data
        self.calibration = calibration if calibration is not None else Calibration()
        self.info = info
        self.labels: Optional[List[Optional[str]]] = list(labels) if labels is not None else None
        self.title = title
        self._shape = data.shape
        self._dtype = data.dtype

    @classmethod
    def from_frames(cls, frames: np.ndarray, **kwargs) -> "RawVolume":
        """由 (T, Y, X) 时间序列构造 C=1, Z=1 的 RawVolume。"""
        frames = np.asarray(frames)
        if frames.ndim != 3:
            raise ValueError(f"Expected a (T, Y, X) stack, got shape {frames.shape}")
        return cls(frames[:, np.newaxis, np.newaxis, :, :], **kwargs)

    # --- 维度信息 (close 之后依然可读) ---
    @property
    def n_frames(self) -> int:
        return self._shape[0]

    @property
    def n_slices(self) -> int:
        return self._shape[1]

    @property
    def n_channels(self) -> int:
        return self._shape[2]

    @property
    def height(self) -> int:
        return self._shape[3]

    @property
    def width(self) -> int:
        return self._shape[4]

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    @property
    def bit_depth(self) -> int:
        return bit_depth_of(self._dtype)

    @property
    def stack_size(self) -> int:
        return self.n_frames * self.n_slices * self.n_channels

    @property
    def is_closed(self) -> bool:
        return self.data is None

    def get_stack_index(self, channel: int, slice_: int, frame: int) -> int:
        """与 ImageJ 的 getStackIndex 相同：参数与返回值均为 1-based。"""
        for name, value, upper in (("channel", channel, self.n_channels),
                                   ("slice", slice_, self.n_slices),
                                   ("frame", frame, self.n_frames)):
            if not 1 <= value <= upper:
                raise IndexError(f"{name} {value} out of range 1..{upper}")
        return (frame - 1) * self.n_slices * self.n_channels + (slice_ - 1) * self.n_channels + channel

    def get_plane(self, channel: int, slice_: int, frame: int) -> np.ndarray:
        """返回 (channel, slice, frame) 处平面的视图 (1-based)，不拷贝。"""
        if self.data is None:
            raise ValueError(f"Volume '{self.title}' has been closed.")
        self.get_stack_index(channel, slice_, frame)
        return self.data[frame - 1, slice_ - 1, channel - 1]

    def get_label(self, channel: int, slice_: int, frame: int) -> Optional[str]:
        if not self.labels:
            return None
        idx = self.get_stack_index(channel, slice_, frame) - 1
        return self.labels[idx] if idx < len(self.labels) else None

    def duplicate(self) -> "RawVolume":
        """深拷贝像素与元数据，标题加上 " [dup]" 后缀。"""
        if self.data is None:
            raise ValueError(f"Volume '{self.title}' has been closed.")
        return RawVolume(
            self.data.copy(),
            calibration=self.calibration.copy(),
            info=self.info,
            labels=copy.copy(self.labels),
            title=f"{self.title} [dup]",
        )

    def close(self) -> None:
        """释放像素缓冲区。"""
        self.data = None

    def __repr__(self):
        return (f"RawVolume('{self.title}', {self.width}x{self.height}, "
                f"C={self.n_channels}, Z={self.n_slices}, T={self.n_frames}, {self.bit_depth}-bit)")


class OutputVolume:
    """
    拆分后的单通道 Volume：C=1, Z=平面数, T=1。
    """

    def __init__(self,
                 name: str,
                 planes: List[np.ndarray],
                 calibration: Calibration,
                 info: Optional[str] = None,
                 labels: Optional[List[Optional[str]]] = None):
        self.name = name
        self.planes: List[np.ndarray] = []
        self.labels: List[Optional[str]] = []
        self.calibration = calibration
        self.info = info
        self.set_stack(planes, labels)

    def set_stack(self, planes: List[np.ndarray], labels: Optional[List[Optional[str]]] = None) -> None:
        """替换平面序列。所有平面必须尺寸与类型一致。"""
        planes = list(planes)
        if labels is None:
            labels = [None] * len(planes)
        if len(labels) != len(planes):
            raise ValueError(f"Got {len(labels)} labels for {len(planes)} planes")
        if planes:
            ref = planes[0]
            for p in planes[1:]:
                if p.shape != ref.shape or p.dtype != ref.dtype:
                    raise ValueError(
                        f"Inconsistent plane in '{self.name}': {p.shape}/{p.dtype} vs {ref.shape}/{ref.dtype}"
                    )
        self.planes = planes
        self.labels = list(labels)

    @property
    def n_channels(self) -> int:
        return 1

    @property
    def n_slices(self) -> int:
        return len(self.planes)

    @property
    def n_frames(self) -> int:
        return 1

    @property
    def width(self) -> int:
        return self.planes[0].shape[1] if self.planes else 0

    @property
    def height(self) -> int:
        return self.planes[0].shape[0] if self.planes else 0

    @property
    def dtype(self) -> Optional[np.dtype]:
        return self.planes[0].dtype if self.planes else None

    def to_array(self) -> np.ndarray:
        """堆叠为 (Z, Y, X) 数组 (会拷贝)。"""
        if not self.planes:
            return np.empty((0, 0, 0), dtype=np.uint16)
        return np.stack(self.planes, axis=0)

    def __repr__(self):
        return (f"OutputVolume('{self.name}', {self.width}x{self.height}, "
                f"Z={self.n_slices}, dtype={self.dtype})")
