import numpy as np
import pytest
from hypothesis import given
from hypothesis import strategies as st

from quantnet1d import quant

Q31_HALF = 1073741824


@given(st.integers(min_value=-128, max_value=127))
def test_clamp_int8_keeps_values_in_range(x):
    assert quant.clamp_int8(x) == x


@given(st.integers(min_value=128, max_value=2**40))
def test_clamp_int8_saturates_high(x):
    assert quant.clamp_int8(x) == 127


@given(st.integers(min_value=-(2**40), max_value=-129))
def test_clamp_int8_saturates_low(x):
    assert quant.clamp_int8(x) == -128


@given(st.integers(min_value=0, max_value=255))
def test_clamp_u8_keeps_values_in_range(x):
    assert quant.clamp_u8(x) == x


@given(st.integers(min_value=-(2**40), max_value=2**40))
def test_clamp_u8_result_in_range(x):
    result = quant.clamp_u8(x)
    assert 0 <= result <= 255
    if x > 255:
        assert result == 255
    if x < 0:
        assert result == 0


@given(
    st.integers(min_value=-128, max_value=127),
    st.sampled_from([0.125, 0.25, 0.5, 1.0, 2.0]),
    st.integers(min_value=-20, max_value=20),
)
def test_quant_inverts_dequant(q, s, z):
    assert quant.quant(quant.dequant(q, s, z), s, z) == q


def test_dequant_zero_point_maps_to_zero():
    assert quant.dequant(17, 0.3, 17) == 0.0


def test_quant_rounds_ties_away_from_zero():
    assert quant.quant(2.5, 1.0, 0) == quant.quant(3.0, 1.0, 0)
    assert quant.quant(-2.5, 1.0, 0) == quant.quant(-3.0, 1.0, 0)
    assert quant.quant(0.5, 1.0, 0) == quant.quant(1.0, 1.0, 0)
    assert quant.quant(1.5, 1.0, 0) == quant.quant(2.0, 1.0, 0)


def test_quant_saturates():
    assert quant.quant(1e6, 1.0, 0) == 127
    assert quant.quant(-1e6, 1.0, 0) == -128


def test_quant_zero_scale_raises():
    with pytest.raises(ValueError):
        quant.quant(1.0, 0.0, 0)


@given(st.integers(min_value=-1000, max_value=1000), st.integers(min_value=-10, max_value=10))
def test_requantize_unit_scale(acc, zy):
    assert quant.requantize(acc, 2.0, 0.5, 1.0, zy) == quant.clamp_int8(acc + zy)


def test_quantize_multiplier_half():
    assert quant.quantize_multiplier(0.5) == (Q31_HALF, 0)


def test_quantize_multiplier_zero():
    assert quant.quantize_multiplier(0.0) == (0, 0)


@given(st.floats(min_value=1e-6, max_value=1e6, allow_nan=False, allow_infinity=False))
def test_quantize_multiplier_reconstructs_scale(scale):
    multiplier, shift = quant.quantize_multiplier(scale)
    expected = float(np.float32(scale))
    assert 2**30 <= multiplier < 2**31
    assert abs(multiplier * 2.0 ** (shift - 31) - expected) <= expected * 2.0**-30


@given(st.floats(min_value=1e-6, max_value=1e6, allow_nan=False, allow_infinity=False))
def test_quantize_multiplier_is_odd_in_sign(scale):
    multiplier, shift = quant.quantize_multiplier(scale)
    assert quant.quantize_multiplier(-scale) == (-multiplier, shift)


def test_quantize_multiplier_nan_raises():
    with pytest.raises(ValueError):
        quant.quantize_multiplier(float("nan"))


@given(st.integers(min_value=0, max_value=2**20))
def test_multiply_by_unit_multiplier_is_identity(x):
    multiplier, shift = quant.quantize_multiplier(1.0)
    assert quant.multiply_by_quantized_multiplier(x, multiplier, shift) == x


@given(st.integers(min_value=-(2**20), max_value=-1))
def test_multiply_by_unit_multiplier_biases_negative_values(x):
    # Rounding away from zero before an arithmetic shift lowers exact negatives by one.
    multiplier, shift = quant.quantize_multiplier(1.0)
    assert quant.multiply_by_quantized_multiplier(x, multiplier, shift) == x - 1


@given(st.integers(min_value=0, max_value=2**20))
def test_multiply_by_two(x):
    multiplier, shift = quant.quantize_multiplier(2.0)
    assert quant.multiply_by_quantized_multiplier(x, multiplier, shift) == 2 * x


@given(st.integers(min_value=-(2**20), max_value=2**20))
def test_multiply_without_shift_uses_raw_product(x):
    assert quant.multiply_by_quantized_multiplier(x, 1, 31) == x


@given(st.integers(min_value=0, max_value=2**20))
def test_requantize_to_int32_halves_even_values(half):
    acc = 2 * half
    assert quant.requantize_to_int32(acc, Q31_HALF, 0) == half


@given(
    st.integers(min_value=-(2**20), max_value=2**20),
    st.integers(min_value=0, max_value=2**31 - 1),
    st.integers(min_value=-30, max_value=0),
)
def test_requantize_to_int32_matches_multiplier_convention(x, multiplier, shift):
    assert quant.requantize_to_int32(x, multiplier, shift) == quant.multiply_by_quantized_multiplier(
        x, multiplier, -shift
    )


def test_requantize_to_int32_rejects_bad_shift():
    with pytest.raises(ValueError):
        quant.requantize_to_int32(1, Q31_HALF, -32)
    with pytest.raises(ValueError):
        quant.requantize_to_int32(1, Q31_HALF, 40)


@given(
    st.integers(min_value=-(2**24), max_value=2**24),
    st.integers(min_value=-1000, max_value=1000),
)
def test_requantize_to_u8_in_range(acc, zy):
    result = quant.requantize_to_u8(acc, Q31_HALF, 0, zy)
    assert 0 <= result <= 255


@given(st.integers(min_value=0, max_value=255))
def test_requantize_to_u8_halves_with_zero_offset(half):
    assert quant.requantize_to_u8(2 * half, Q31_HALF, 0, 0) == half


def test_requantize_to_u8_saturates():
    assert quant.requantize_to_u8(10, Q31_HALF, 0, 1000) == 255
    assert quant.requantize_to_u8(10, Q31_HALF, 0, -1000) == 0