import pytest

from quantnet1d import layers
from quantnet1d.hls.config import (
    DOWN,
    DOWN_OUT_SIZE,
    RES,
    RES2,
    RES2_OUT_SIZE,
    STEM,
    STEM_IN_SIZE,
    ConvShape,
)


def test_stem_geometry_pinned():
    assert STEM.in_size() == 320
    assert STEM.out_len == 160
    assert STEM_IN_SIZE == STEM.in_size()


def test_downsample_halves_length():
    assert DOWN.in_size() == 32 * 160
    assert DOWN.out_size() == 64 * 80
    assert DOWN.out_size() // DOWN.out_ch * 2 == DOWN.in_size() // DOWN.in_ch


@pytest.mark.parametrize("shape", [STEM, RES, DOWN, RES2])
def test_sizes_are_products(shape):
    assert shape.in_size() == shape.in_ch * shape.in_len
    assert shape.out_size() == shape.out_ch * shape.out_len
    assert shape.weight_size() == shape.kernel * shape.in_ch * shape.out_ch


@pytest.mark.parametrize("shape", [STEM, RES, DOWN, RES2])
def test_out_len_matches_convolution_formula(shape):
    assert shape.out_len == layers.conv_output_length(
        shape.in_len, shape.kernel, shape.stride, shape.padding
    )


def test_stages_chain():
    assert RES.in_size() == STEM.out_size()
    assert DOWN.in_size() == RES.out_size()
    assert RES2.in_size() == DOWN.out_size()
    assert DOWN_OUT_SIZE == DOWN.out_size()
    assert RES2_OUT_SIZE == RES2.out_size()


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(in_ch=0, in_len=4, out_ch=1, kernel=1, stride=1, padding=0, out_len=4),
        dict(in_ch=1, in_len=4, out_ch=1, kernel=1, stride=0, padding=0, out_len=4),
        dict(in_ch=1, in_len=4, out_ch=1, kernel=1, stride=1, padding=-1, out_len=4),
    ],
)
def test_invalid_shape_rejected(kwargs):
    with pytest.raises(ValueError):
        ConvShape(**kwargs)