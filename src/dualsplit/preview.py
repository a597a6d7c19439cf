# src/dualsplit/preview.py
"""预览图：每个输出 Volume 取一个平面并排显示，保存为 PNG。只用于查看，不改变数据。"""
from typing import Sequence

import numpy as np
from matplotlib.colors import LinearSegmentedColormap
from matplotlib.figure import Figure

from .model import OutputVolume

# 与 ImageJ 的 Green / Red LUT 相同：黑色 -> 纯色
LUT_COLORS = {"green": "#00FF00", "red": "#FF0000"}


def lut_for(name: str):
    color = LUT_COLORS.get(name.lower())
    if color is None:
        return "gray"
    return LinearSegmentedColormap.from_list(f"lut_{name.lower()}", ["#000000", color])


def save_preview(volumes: Sequence[OutputVolume], file_path: str, plane_index: int = 0, dpi: int = 100) -> str:
    """
    Args:
        volumes: 要显示的 Volume (通常为 Green, Red)。
        file_path (str): PNG 保存路径。
        plane_index (int): 显示第几个平面，超出范围时取最后一个。
    """
    if not volumes:
        raise ValueError("No volumes to preview.")

    fig = Figure(figsize=(4 * len(volumes), 4.4), dpi=dpi)
    fig.patch.set_facecolor("#FFFFFF")

    for i, vol in enumerate(volumes):
        ax = fig.add_subplot(1, len(volumes), i + 1)
        ax.axis("off")
        if vol.n_slices == 0:
            ax.set_title(f"{vol.name} (empty)")
            continue

        idx = min(max(plane_index, 0), vol.n_slices - 1)
        plane = vol.planes[idx]
        # 对比度按 0.5% ~ 99.5% 拉伸，类似 ImageJ 的 Auto
        lo, hi = np.percentile(plane, (0.5, 99.5))
        if hi <= lo:
            hi = lo + 1
        ax.imshow(plane, cmap=lut_for(vol.name), vmin=lo, vmax=hi, interpolation="nearest")
        ax.set_title(f"{vol.name}  z={idx + 1}/{vol.n_slices}  {vol.width}x{vol.height}", fontsize=9)

    fig.savefig(file_path, bbox_inches="tight")
    return file_path
