"""Fixed-shape pipeline kernels: convolution, ReLU and residual addition."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike

from quantnet1d.hls.config import DOWN, RES, RES2, STEM, ConvShape

_MAX_TOTAL_SHIFT = 63


@dataclass
class ConvWeights:
    """Convolution weights laid out ``[kernel][in_ch][out_ch]`` and per-channel data."""

    weight: ArrayLike
    bias: ArrayLike
    multiplier: ArrayLike
    shift: ArrayLike
    weight_zp: ArrayLike


@dataclass
class AddQuant:
    """Fixed-point parameters of a residual addition."""

    multiplier_a: int
    shift_a: int
    za: int
    multiplier_b: int
    shift_b: int
    zb: int
    zy: int


def _vector(values: ArrayLike, size: int, name: str) -> np.ndarray:
    arr = np.asarray(values).astype(np.int64).ravel()
    if arr.size != size:
        raise ValueError(f"{name} has {arr.size} elements, expected {size}")
    return arr


def _wrap_int32(values: np.ndarray) -> np.ndarray:
    return values.astype(np.int32).astype(np.int64)


def _requantize_int32(acc: np.ndarray, multiplier: np.ndarray, shift: np.ndarray) -> np.ndarray:
    """Round-to-nearest fixed-point scaling; arrays broadcast together."""
    total = np.asarray(shift, dtype=np.int64) + 31
    if np.any(total < 0) or np.any(total > _MAX_TOTAL_SHIFT):
        raise ValueError("shift is out of range")
    scaled = acc * np.asarray(multiplier, dtype=np.int64)
    rounding = np.where(
        total > 0, np.left_shift(np.int64(1), np.maximum(total - 1, 0)), 0
    )
    scaled = np.where(scaled >= 0, scaled + rounding, scaled - rounding)
    return _wrap_int32(np.right_shift(scaled, total))


def _clamp_u8(values: np.ndarray) -> np.ndarray:
    return np.clip(values, 0, 255).astype(np.uint8)


def conv1d(input: ArrayLike, weights: ConvWeights, zx: int, zy: int, shape: ConvShape) -> np.ndarray:
    """Quantized convolution of ``[in_ch][in_len]`` into a flat ``[out_ch][out_len]`` uint8 tensor."""
    x = _vector(input, shape.in_size(), "input").reshape(shape.in_ch, shape.in_len)
    w = _vector(weights.weight, shape.weight_size(), "weight").reshape(
        shape.kernel, shape.in_ch, shape.out_ch
    )
    bias = _vector(weights.bias, shape.out_ch, "bias")
    multiplier = _vector(weights.multiplier, shape.out_ch, "multiplier")
    shift = _vector(weights.shift, shape.out_ch, "shift")
    weight_zp = _vector(weights.weight_zp, shape.out_ch, "weight_zp")

    zx = int(zx)
    pad_value = (zx & 0xFF) - zx
    centered = np.concatenate(
        [x - zx, np.full((shape.in_ch, 1), pad_value, dtype=np.int64)], axis=1
    )
    positions = (
        np.arange(shape.out_len)[:, None] * shape.stride
        + np.arange(shape.kernel)[None, :]
        - shape.padding
    )
    positions = np.where((positions >= 0) & (positions < shape.in_len), positions, shape.in_len)
    windows = centered[:, positions]
    w_centered = w - weight_zp[None, None, :]
    acc = _wrap_int32(bias[:, None] + np.einsum("iok,kic->co", windows, w_centered))
    scaled = _requantize_int32(acc, multiplier[:, None], shift[:, None])
    return _clamp_u8(_wrap_int32(scaled + int(zy))).ravel()


def stem_conv1d(input: ArrayLike, weights: ConvWeights, zx: int, zy: int) -> np.ndarray:
    """Stem convolution: ``[1][320]`` to ``[32][160]``."""
    return conv1d(input, weights, zx, zy, STEM)


def res_conv1d(input: ArrayLike, weights: ConvWeights, zx: int, zy: int) -> np.ndarray:
    """First residual block convolution: ``[32][160]`` to ``[32][160]``."""
    return conv1d(input, weights, zx, zy, RES)


def down_conv1d(input: ArrayLike, weights: ConvWeights, zx: int, zy: int) -> np.ndarray:
    """Downsampling convolution: ``[32][160]`` to ``[64][80]``."""
    return conv1d(input, weights, zx, zy, DOWN)


def res2_conv1d(input: ArrayLike, weights: ConvWeights, zx: int, zy: int) -> np.ndarray:
    """Second residual block convolution: ``[64][80]`` to ``[64][80]``."""
    return conv1d(input, weights, zx, zy, RES2)


def relu(input: ArrayLike, zy: int, size: int) -> np.ndarray:
    """Quantized ReLU; the zero point is taken modulo 256, as a uint8."""
    x = _vector(input, size, "input")
    floor = int(zy) & 0xFF
    return np.where(x < floor, floor, x).astype(np.uint8)


def stem_relu(input: ArrayLike, zy: int) -> np.ndarray:
    """ReLU over the stem output."""
    return relu(input, zy, STEM.out_size())


def res_relu(input: ArrayLike, zy: int) -> np.ndarray:
    """ReLU over the first residual block's tensors."""
    return relu(input, zy, RES.out_size())


def down_relu(input: ArrayLike, zy: int) -> np.ndarray:
    """ReLU over the downsampling output."""
    return relu(input, zy, DOWN.out_size())


def res2_relu(input: ArrayLike, zy: int) -> np.ndarray:
    """ReLU over the second residual block's tensors."""
    return relu(input, zy, RES2.out_size())


def add(input_a: ArrayLike, input_b: ArrayLike, quant: AddQuant, size: int) -> np.ndarray:
    """Residual addition with separate fixed-point rescaling of each operand."""
    a = _vector(input_a, size, "input_a")
    b = _vector(input_b, size, "input_b")
    a_scaled = _requantize_int32(_wrap_int32(a - int(quant.za)), quant.multiplier_a, quant.shift_a)
    b_scaled = _requantize_int32(_wrap_int32(b - int(quant.zb)), quant.multiplier_b, quant.shift_b)
    return _clamp_u8(_wrap_int32(a_scaled + b_scaled + int(quant.zy)))


def add_stem(input_a: ArrayLike, input_b: ArrayLike, quant: AddQuant) -> np.ndarray:
    """Addition over tensors of the stem output size."""
    return add(input_a, input_b, quant, STEM.out_size())


def add_res(input_a: ArrayLike, input_b: ArrayLike, quant: AddQuant) -> np.ndarray:
    """Addition for the first residual block."""
    return add(input_a, input_b, quant, RES.out_size())


def add_res2(input_a: ArrayLike, input_b: ArrayLike, quant: AddQuant) -> np.ndarray:
    """Addition for the second residual block."""
    return add(input_a, input_b, quant, RES2.out_size())