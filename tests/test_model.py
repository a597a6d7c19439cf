# tests/test_model.py
import numpy as np
import pytest
from dualsplit.errors import UnsupportedElementWidthError
from dualsplit.model import Calibration, ElementWidth, OutputVolume, RawVolume


def test_element_width_lookup():
    assert ElementWidth.from_dtype(np.uint8) is ElementWidth.EIGHT_BIT
    assert ElementWidth.from_dtype(np.uint16) is ElementWidth.SIXTEEN_BIT
    assert ElementWidth.EIGHT_BIT.dtype == np.uint8
    assert ElementWidth.SIXTEEN_BIT.dtype == np.uint16
    with pytest.raises(UnsupportedElementWidthError):
        ElementWidth.from_dtype(np.float32)


def test_stack_index_matches_imagej_ordering():
    vol = RawVolume(np.zeros((3, 2, 2, 4, 4), dtype=np.uint8))
    assert vol.get_stack_index(1, 1, 1) == 1
    assert vol.get_stack_index(2, 1, 1) == 2
    assert vol.get_stack_index(1, 2, 1) == 3
    assert vol.get_stack_index(1, 1, 2) == 5
    assert vol.get_stack_index(2, 2, 3) == vol.stack_size
    with pytest.raises(IndexError):
        vol.get_stack_index(3, 1, 1)


def test_get_plane_is_a_view():
    frames = np.arange(3 * 4 * 5, dtype=np.uint16).reshape(3, 4, 5)
    vol = RawVolume.from_frames(frames)
    plane = vol.get_plane(1, 1, 2)
    np.testing.assert_array_equal(plane, frames[1])
    assert np.shares_memory(plane, frames)


def test_duplicate_is_independent():
    vol = RawVolume.from_frames(np.zeros((2, 4, 4), dtype=np.uint8),
                                calibration=Calibration(pixel_width=0.5), title="stack.tif")
    dup = vol.duplicate()
    dup.data[0] = 9
    dup.calibration.pixel_width = 3.0
    assert vol.data.max() == 0
    assert vol.calibration.pixel_width == 0.5
    assert dup.title == "stack.tif [dup]"


def test_close_keeps_dimensions():
    vol = RawVolume.from_frames(np.zeros((2, 4, 6), dtype=np.uint8))
    vol.close()
    assert vol.is_closed
    assert (vol.width, vol.height, vol.n_frames) == (6, 4, 2)
    with pytest.raises(ValueError):
        vol.get_plane(1, 1, 1)


def test_raw_volume_requires_5d():
    with pytest.raises(ValueError):
        RawVolume(np.zeros((2, 4, 4), dtype=np.uint8))


def test_output_volume_dimensions():
    planes = [np.zeros((4, 6), dtype=np.uint16) for _ in range(3)]
    vol = OutputVolume("Red", planes, Calibration())
    assert (vol.n_channels, vol.n_slices, vol.n_frames) == (1, 3, 1)
    assert (vol.width, vol.height) == (6, 4)
    assert vol.labels == [None, None, None]
    assert vol.to_array().shape == (3, 4, 6)


def test_output_volume_rejects_mixed_planes():
    planes = [np.zeros((4, 6), dtype=np.uint16), np.zeros((4, 6), dtype=np.uint8)]
    with pytest.raises(ValueError):
        OutputVolume("Red", planes, Calibration())
    with pytest.raises(ValueError):
        OutputVolume("Red", planes[:1], Calibration(), labels=["a", "b"])


def test_calibration_copy():
    cal = Calibration(pixel_width=0.2, unit="micron")
    other = cal.copy()
    assert other == cal
    assert other is not cal
