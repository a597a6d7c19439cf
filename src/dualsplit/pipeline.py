# src/dualsplit/pipeline.py
"""
拆分流程:
    Validate -> Extract & Resample (每帧) -> Assemble(A), Assemble(B) -> Flip -> Reverse

要么产生两个 Volume，要么在校验阶段失败、什么都不产生。
"""
import logging
from typing import Callable, Optional, Tuple

from .config import SplitConfig
from .model import OutputVolume, RawVolume
from .processing import (
    assemble_volume,
    deinterleave_frames,
    flip_horizontal,
    reverse_depth,
    scaled_calibration,
    validate_dimensions,
)

logger = logging.getLogger(__name__)


def split_channels(source: RawVolume,
                   config: Optional[SplitConfig] = None,
                   progress_callback: Optional[Callable[[int, int], None]] = None
                   ) -> Tuple[OutputVolume, OutputVolume]:
    """
    把交错双通道时间序列拆分为两个 Volume。

    Args:
        source (RawVolume): C=1, Z=1, T>=2 的输入。duplicate_input=True (默认) 时不会被修改。
        config (SplitConfig, optional): 拆分参数，缺省使用默认值。
        progress_callback (callable, optional): 进度回调 (current, total)，每帧调用一次。

    Returns:
        (green, red): 通道 A (偶数帧) 与通道 B (奇数帧)。

    Raises:
        DimensionalityError, UnsupportedElementWidthError: 输入不合法。
    """
    if config is None:
        config = SplitConfig()

    # 1. 校验 (在任何拷贝之前)
    element_width = validate_dimensions(source)

    # 2. 工作副本
    imp = source.duplicate() if config.duplicate_input else source
    w0, h0 = imp.width, imp.height
    out_w, out_h = config.target_size(w0, h0)
    logger.info(f"Splitting '{source.title}' ({element_width.value}-bit) -> {out_w}x{out_h}, "
                f"duplicate={config.duplicate_input}")

    # 3. 拆分 + 缩放
    green_planes, green_labels, red_planes, red_labels = deinterleave_frames(
        imp, (out_w, out_h), element_width, progress_callback=progress_callback
    )

    # 4. 组装：标定只计算一次，每个输出各自持有一份拷贝
    out_cal = scaled_calibration(imp.calibration, w0, h0, out_w, out_h)
    info = source.info

    green = assemble_volume(config.green_name, green_planes, out_cal.copy(), info, green_labels)
    red = assemble_volume(config.red_name, red_planes, out_cal.copy(), info, red_labels)

    # 释放工作副本 (原图保持不变)，再做翻转，控制峰值内存
    if config.duplicate_input:
        imp.close()
        logger.debug("Released working duplicate")

    # 5. 翻转
    if config.flip_horizontal:
        flip_horizontal(green)
        flip_horizontal(red)
    if config.reverse_depth_order:
        reverse_depth(green)
        reverse_depth(red)

    logger.info(f"Done: {green!r}, {red!r}")
    return green, red
