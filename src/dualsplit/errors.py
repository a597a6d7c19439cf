# src/dualsplit/errors.py
from typing import Optional


class DualSplitError(Exception):
    """所有 dualsplit 异常的基类。"""


class DimensionalityError(DualSplitError):
    """
    输入堆栈的维度不符合要求 (需要 C=1, Z=1, T>=2，且宽高不为 0)。
    携带实际测得的 C/Z/T 与宽高，方便调用方给出诊断信息。
    """

    def __init__(self, n_channels: int, n_slices: int, n_frames: int,
                 width: Optional[int] = None, height: Optional[int] = None):
        self.n_channels = n_channels
        self.n_slices = n_slices
        self.n_frames = n_frames
        self.width = width
        self.height = height
        if width is not None and height is not None:
            message = (f"Expected a non-empty image, got size {width}x{height} "
                       f"(C={n_channels}, Z={n_slices}, T={n_frames}).")
        else:
            message = (f"Expected C=1, Z=1, T>=2 (interleaved channels across time), "
                       f"got C={n_channels}, Z={n_slices}, T={n_frames}.")
        super().__init__(message)


class UnsupportedElementWidthError(DualSplitError):
    """像素类型不是 8-bit 或 16-bit 无符号整数。"""

    def __init__(self, bit_depth: int, dtype: Optional[str] = None):
        self.bit_depth = bit_depth
        self.dtype = dtype
        got = f"{dtype} ({bit_depth}-bit)" if dtype else f"{bit_depth}-bit"
        super().__init__(f"Only 16-bit or 8-bit unsigned images supported, got {got}.")


class VolumeReadError(DualSplitError):
    """无法读取输入文件。"""

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not read {path}: {reason}")
