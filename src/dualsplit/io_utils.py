# src/dualsplit/io_utils.py
"""
读写 ImageJ Tiff。这一层只负责把文件转换为 RawVolume / 把 OutputVolume 写回文件，
不包含任何拆分逻辑。
"""
import logging
import os
from typing import Dict, Iterable, Optional

import numpy as np
import tifffile as tiff

from .errors import UnsupportedElementWidthError, VolumeReadError
from .model import Calibration, OutputVolume, RawVolume, bit_depth_of

logger = logging.getLogger(__name__)

HYPERSTACK_AXES = "TZCYX"


def _pixel_size(tag) -> float:
    """XResolution/YResolution 记录的是每单位像素数，取倒数得到像素尺寸。"""
    if tag is None:
        return 1.0
    value = tag.value
    if isinstance(value, tuple):
        num, den = value
        if num == 0:
            return 1.0
        return den / num
    return 1.0 / value if value else 1.0


def calibration_from_tiff(page, ij_meta: dict) -> Calibration:
    """从 Tiff 标签和 ImageJ 元数据中读取物理标定。"""
    return Calibration(
        pixel_width=_pixel_size(page.tags.get("XResolution")),
        pixel_height=_pixel_size(page.tags.get("YResolution")),
        pixel_depth=float(ij_meta.get("spacing", 1.0)),
        unit=str(ij_meta.get("unit", "pixel")),
        x_origin=float(ij_meta.get("xorigin", 0.0)),
        y_origin=float(ij_meta.get("yorigin", 0.0)),
        z_origin=float(ij_meta.get("zorigin", 0.0)),
        frame_interval=float(ij_meta.get("finterval", 0.0)),
        time_unit=str(ij_meta.get("tunit", "sec")),
    )


def to_hyperstack(data: np.ndarray, axes: str) -> np.ndarray:
    """
    把任意轴顺序的数组整理为 (T, Z, C, Y, X)。
    'I' / 'Q' (无 ImageJ 元数据的普通多页 Tiff) 视为时间轴。
    """
    axes = "".join("T" if a in "IQ" else a for a in axes.upper())

    if "S" in axes:
        # RGB 等多采样数据，ImageJ 中为 24-bit
        n_samples = data.shape[axes.index("S")]
        raise UnsupportedElementWidthError(bit_depth_of(data.dtype) * n_samples)

    unknown = set(axes) - set(HYPERSTACK_AXES)
    if unknown or len(set(axes)) != len(axes):
        raise ValueError(f"Unsupported axes '{axes}' for shape {data.shape}")

    for a in HYPERSTACK_AXES:
        if a not in axes:
            data = data[np.newaxis]
            axes = a + axes

    order = [axes.index(a) for a in HYPERSTACK_AXES]
    return np.ascontiguousarray(np.transpose(data, order))


def read_volume(file_path: str) -> RawVolume:
    """
    读取 Tiff 为 RawVolume，保留标定、Info 与切片标签。

    Raises:
        VolumeReadError: 文件不存在或无法解析。
        UnsupportedElementWidthError: RGB 数据。
    """
    if not os.path.exists(file_path):
        raise VolumeReadError(file_path, "file not found")

    try:
        with tiff.TiffFile(file_path) as tif:
            series = tif.series[0]
            raw_data = series.asarray()
            axes = series.axes
            ij_meta = tif.imagej_metadata or {}
            calibration = calibration_from_tiff(tif.pages[0], ij_meta)
    except (OSError, ValueError, tiff.TiffFileError) as e:
        raise VolumeReadError(file_path, e) from e

    try:
        data = to_hyperstack(raw_data, axes)
    except ValueError as e:
        raise VolumeReadError(file_path, e) from e

    labels = ij_meta.get("Labels")
    if labels is not None and len(labels) != data.shape[0] * data.shape[1] * data.shape[2]:
        logger.warning(f"Ignoring {len(labels)} slice labels that do not match the stack size")
        labels = None

    volume = RawVolume(
        data,
        calibration=calibration,
        info=ij_meta.get("Info"),
        labels=labels,
        title=os.path.basename(file_path),
    )
    logger.debug(f"Read {volume!r} (axes={axes})")
    return volume


def inspect_file(file_path: str) -> dict:
    """只读取文件头信息，不加载像素数据。"""
    if not os.path.exists(file_path):
        raise VolumeReadError(file_path, "file not found")

    try:
        with tiff.TiffFile(file_path) as tif:
            series = tif.series[0]
            ij_meta = tif.imagej_metadata
            result = {
                "shape": tuple(series.shape),
                "dtype": str(series.dtype),
                "axes": series.axes,
                "imagej": bool(ij_meta),
                "channels": 1,
                "slices": 1,
                "frames": 1,
            }
            if ij_meta:
                result["channels"] = ij_meta.get("channels", 1)
                result["slices"] = ij_meta.get("slices", 1)
                result["frames"] = ij_meta.get("frames", 1)
    except (OSError, ValueError, tiff.TiffFileError) as e:
        raise VolumeReadError(file_path, e) from e

    result["size_mb"] = os.path.getsize(file_path) / (1024 * 1024)
    return result


def write_volume(volume: OutputVolume, file_path: str) -> str:
    """把 OutputVolume 写为 ImageJ Hyperstack (ZYX)，带标定、Info 和切片标签。"""
    cal = volume.calibration
    metadata = {
        "axes": "ZYX",
        "spacing": cal.pixel_depth,
        "unit": cal.unit,
        "finterval": cal.frame_interval,
        "tunit": cal.time_unit,
        "xorigin": cal.x_origin,
        "yorigin": cal.y_origin,
        "zorigin": cal.z_origin,
    }
    if volume.info is not None:
        metadata["Info"] = volume.info
    if any(label is not None for label in volume.labels):
        metadata["Labels"] = [label or "" for label in volume.labels]

    tiff.imwrite(
        file_path,
        volume.to_array(),
        imagej=True,
        resolution=(1.0 / cal.pixel_width, 1.0 / cal.pixel_height),
        metadata=metadata,
    )
    logger.debug(f"Wrote {volume!r} -> {file_path}")
    return file_path


def output_paths(source_path: str, out_dir: Optional[str], names: Iterable[str]) -> Dict[str, str]:
    """按 <源文件名>_<通道名>.tif 生成输出路径。out_dir 缺省为源文件所在目录。"""
    stem = os.path.splitext(os.path.basename(source_path))[0]
    if stem.lower().endswith(".ome"):
        stem = stem[:-4]
    target_dir = out_dir or os.path.dirname(os.path.abspath(source_path))
    return {name: os.path.join(target_dir, f"{stem}_{name}.tif") for name in names}
