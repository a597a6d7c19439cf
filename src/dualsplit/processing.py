# src/dualsplit/processing.py
import logging
from typing import Callable, List, Optional, Tuple

import numpy as np

from .errors import DimensionalityError, UnsupportedElementWidthError
from .model import Calibration, ElementWidth, OutputVolume, RawVolume, bit_depth_of

# [核心依赖] 必须安装 OpenCV
try:
    import cv2
except ImportError:
    cv2 = None

logger = logging.getLogger(__name__)


def validate_dimensions(volume: RawVolume) -> ElementWidth:
    """
    检查输入维度与位深。必须在分配任何缓冲区之前调用。

    Returns:
        ElementWidth: 解析后的位深，后续流程不再按像素判断类型。

    Raises:
        DimensionalityError: C != 1, Z != 1 或 T < 2。
        DimensionalityError: 宽或高为 0。
        UnsupportedElementWidthError: 像素类型不是 uint8 或 uint16。
    """
    n_c, n_z, n_t = volume.n_channels, volume.n_slices, volume.n_frames
    logger.info(f"Detected: C={n_c} Z={n_z} T={n_t} bit={volume.bit_depth} "
                f"size={volume.width}x{volume.height}")

    if n_c != 1 or n_z != 1 or n_t < 2:
        raise DimensionalityError(n_c, n_z, n_t)
    if volume.width < 1 or volume.height < 1:
        raise DimensionalityError(n_c, n_z, n_t, width=volume.width, height=volume.height)

    return ElementWidth.from_dtype(volume.dtype)


def scaled_calibration(calibration: Calibration,
                       src_width: int, src_height: int,
                       dst_width: int, dst_height: int) -> Calibration:
    """
    缩放后保持物理视野不变：像素尺寸按缩放比例反向调整。
    pixel_depth、原点、单位和时间信息原样保留 (没有 Z 重采样)。
    """
    sx = src_width / dst_width
    sy = src_height / dst_height
    return calibration.scaled(sx, sy)


def resize_plane(plane: np.ndarray, width: int, height: int,
                 element_width: Optional[ElementWidth] = None) -> np.ndarray:
    """
    双线性插值缩放单个平面。

    返回值总是一块新的缓冲区，即使尺寸不变也会拷贝，
    之后的原地翻转不会影响源数据或另一个通道。
    边缘处的采样坐标会被截断到最近的有效像素 (cv2 默认的 BORDER_REPLICATE 行为)。

    element_width 为校验阶段已解析的位深；缺省时按 plane.dtype 解析。
    """
    if element_width is None:
        element_width = ElementWidth.from_dtype(plane.dtype)
    elif plane.dtype.kind != "u" or plane.dtype.itemsize != element_width.dtype.itemsize:
        raise UnsupportedElementWidthError(bit_depth_of(plane.dtype), dtype=plane.dtype.name)

    if plane.shape == (height, width):
        return plane.copy()

    if cv2 is None:
        raise ImportError("Missing Dependency: Please install 'opencv-python' to resize frames.")

    src = np.ascontiguousarray(plane)
    out = cv2.resize(src, (width, height), interpolation=cv2.INTER_LINEAR)
    if np.shares_memory(out, plane):
        out = out.copy()
    return out


def deinterleave_frames(volume: RawVolume,
                        target_size: Tuple[int, int],
                        element_width: Optional[ElementWidth] = None,
                        progress_callback: Optional[Callable[[int, int], None]] = None
                        ) -> Tuple[List[np.ndarray], List[Optional[str]], List[np.ndarray], List[Optional[str]]]:
    """
    按帧序号奇偶拆分通道，同时把每帧缩放到目标尺寸。
    偶数帧 (0-based) -> 通道 A (Green)，奇数帧 -> 通道 B (Red)。
    T 为奇数时通道 A 多一帧。

    Args:
        volume (RawVolume): 已通过校验的输入 (C=1, Z=1)。
        target_size (tuple): (width, height)。
        element_width (ElementWidth, optional): validate_dimensions 的返回值，缺省时按 dtype 解析一次。
        progress_callback (callable, optional): 进度回调 (current, total)。

    Returns:
        (green_planes, green_labels, red_planes, red_labels)
    """
    out_w, out_h = target_size
    n_t = volume.n_frames
    if element_width is None:
        element_width = ElementWidth.from_dtype(volume.dtype)

    green_planes, green_labels = [], []
    red_planes, red_labels = [], []

    for t in range(n_t):
        # C=1, Z=1, T=t+1
        src = volume.get_plane(1, 1, t + 1)
        label = volume.get_label(1, 1, t + 1)
        dst = resize_plane(src, out_w, out_h, element_width)

        if t % 2 == 0:
            green_planes.append(dst)
            green_labels.append(label)
        else:
            red_planes.append(dst)
            red_labels.append(label)

        if progress_callback:
            progress_callback(t + 1, n_t)

    logger.debug(f"Deinterleaved {n_t} frames -> {len(green_planes)} + {len(red_planes)} planes "
                 f"at {out_w}x{out_h}")
    return green_planes, green_labels, red_planes, red_labels


def assemble_volume(name: str,
                    planes: List[np.ndarray],
                    calibration: Calibration,
                    info: Optional[str] = None,
                    labels: Optional[List[Optional[str]]] = None) -> OutputVolume:
    """组装输出 Volume: C=1, Z=len(planes), T=1。像素内容不做任何变换。"""
    return OutputVolume(name, planes, calibration, info=info, labels=labels)


def flip_horizontal(volume: OutputVolume) -> None:
    """左右镜像，原地修改每个平面自己的缓冲区。执行两次即恢复原状。"""
    for plane in volume.planes:
        plane[:] = plane[:, ::-1]


def reverse_depth(volume: OutputVolume) -> None:
    """反转 Z 顺序 (平面 i -> n-1-i)。平面内容和标签不变，只改变顺序。"""
    volume.set_stack(volume.planes[::-1], volume.labels[::-1])
