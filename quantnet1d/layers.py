"""Reference layers operating on uint8 activations and int8 weights."""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike

from quantnet1d.quant import quantize_multiplier

_MAX_TOTAL_SHIFT = 63


def _as_int64(values: ArrayLike, size: int, name: str) -> np.ndarray:
    arr = np.asarray(values, dtype=np.int64).ravel()
    if arr.size != size:
        raise ValueError(f"{name} has {arr.size} elements, expected {size}")
    return arr


def _as_float32(values: ArrayLike, size: int, name: str) -> np.ndarray:
    arr = np.asarray(values, dtype=np.float32).ravel()
    if arr.size != size:
        raise ValueError(f"{name} has {arr.size} elements, expected {size}")
    return arr


def _wrap_int32(values: np.ndarray) -> np.ndarray:
    return values.astype(np.int32).astype(np.int64)


def _round_half_away(values: np.ndarray) -> np.ndarray:
    """Round float64 values to nearest, ties away from zero."""
    if not np.all(np.isfinite(values)):
        raise ValueError("cannot round non-finite values")
    floor = np.floor(values)
    frac = values - floor
    up = (frac > 0.5) | ((frac == 0.5) & (values > 0))
    return np.where(up, floor + 1, floor)


def _requantize_u8(acc: np.ndarray, multiplier: np.ndarray, shift: np.ndarray, zy: int) -> np.ndarray:
    """Per-row fixed-point requantization of a 2-D accumulator to uint8."""
    total = shift + 31
    if np.any(total < 0) or np.any(total > _MAX_TOTAL_SHIFT):
        raise ValueError("shift is out of range")
    scaled = acc * multiplier[:, None]
    rounding = np.where(total > 0, np.left_shift(np.int64(1), np.maximum(total - 1, 0)), 0)[:, None]
    scaled = np.where(scaled >= 0, scaled + rounding, scaled - rounding)
    q = _wrap_int32(np.right_shift(scaled, total[:, None])) + int(zy)
    return np.clip(q, 0, 255).astype(np.uint8)


def _scale_by_multiplier(values: np.ndarray, multiplier: int, shift: int) -> np.ndarray:
    total = 31 - shift
    if total > _MAX_TOTAL_SHIFT:
        raise ValueError(f"shift {shift} is out of range")
    prod = values * np.int64(multiplier)
    if total > 0:
        rounding = 1 << (total - 1)
        prod = np.where(prod >= 0, prod + rounding, prod - rounding) >> total
    else:
        prod = prod << -total
    return _wrap_int32(prod)


def conv_output_length(in_len: int, kernel: int, stride: int, padding: int) -> int:
    """Output length of a 1-D convolution, with integer division truncating toward zero."""
    if stride <= 0:
        raise ValueError(f"stride must be positive, got {stride}")
    span = in_len + 2 * padding - kernel
    steps = abs(span) // stride
    return (-steps if span < 0 else steps) + 1


def conv1d(
    input: ArrayLike,
    weight: ArrayLike,
    bias: ArrayLike,
    in_ch: int,
    out_ch: int,
    in_len: int,
    kernel: int,
    stride: int,
    padding: int,
    multiplier: ArrayLike,
    shift: ArrayLike,
    zx: int,
    zw: ArrayLike,
    zy: int,
) -> np.ndarray:
    """Quantized 1-D convolution.

    ``input`` is laid out ``[in_ch][in_len]``, ``weight`` ``[kernel][in_ch][out_ch]``;
    the result is a flat uint8 array laid out ``[out_ch][out_len]``.
    """
    if min(in_ch, out_ch, in_len, kernel) < 0:
        raise ValueError("dimensions must not be negative")
    out_len = conv_output_length(in_len, kernel, stride, padding)
    x = _as_int64(input, in_ch * in_len, "input").reshape(in_ch, in_len)
    w = _as_int64(weight, kernel * in_ch * out_ch, "weight").reshape(kernel, in_ch, out_ch)
    b = _as_int64(bias, out_ch, "bias")
    m = _as_int64(multiplier, out_ch, "multiplier")
    s = _as_int64(shift, out_ch, "shift")
    w_zp = _as_int64(zw, out_ch, "zw")
    if out_len <= 0:
        return np.zeros(0, dtype=np.uint8)

    pad_value = (int(zx) & 0xFF) - int(zx)
    centered = np.concatenate(
        [x - int(zx), np.full((in_ch, 1), pad_value, dtype=np.int64)], axis=1
    )
    positions = np.arange(out_len)[:, None] * stride + np.arange(kernel)[None, :] - padding
    positions = np.where((positions >= 0) & (positions < in_len), positions, in_len)
    windows = centered[:, positions]
    w_centered = w - w_zp[None, None, :]
    acc = b[:, None] + np.einsum("iok,kic->co", windows, w_centered)
    return _requantize_u8(_wrap_int32(acc), m, s, zy).ravel()


def relu(input: ArrayLike, zy: int) -> np.ndarray:
    """ReLU in the quantized domain: values below the zero point become the zero point."""
    x = np.asarray(input).astype(np.int64).ravel()
    return np.where(x < int(zy), int(zy) & 0xFF, x).astype(np.uint8)


def add(
    x1: ArrayLike,
    x2: ArrayLike,
    s1: float,
    s2: float,
    sy: float,
    z1: int,
    z2: int,
    zy: int,
) -> np.ndarray:
    """Element-wise sum of two uint8 tensors with different quantization parameters."""
    a = np.asarray(x1).astype(np.int64).ravel()
    b = np.asarray(x2).astype(np.int64).ravel()
    if a.shape != b.shape:
        raise ValueError(f"inputs differ in size: {a.size} and {b.size}")
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        ratio1 = float(np.float32(s1) / np.float32(sy))
        ratio2 = float(np.float32(s2) / np.float32(sy))
    m1, sh1 = quantize_multiplier(ratio1)
    m2, sh2 = quantize_multiplier(ratio2)
    aq = _scale_by_multiplier(a - int(z1), m1, sh1)
    bq = _scale_by_multiplier(b - int(z2), m2, sh2)
    return np.clip(aq + bq + int(zy), 0, 255).astype(np.uint8)


def fc(
    input: ArrayLike,
    weight: ArrayLike,
    bias: ArrayLike,
    in_features: int,
    out_features: int,
    multiplier: ArrayLike,
    shift: ArrayLike,
    zx: int,
    zw: ArrayLike,
    zy: int,
) -> np.ndarray:
    """Quantized fully connected layer; ``weight`` is laid out ``[out][in]``."""
    x = _as_int64(input, in_features, "input")
    w = _as_int64(weight, in_features * out_features, "weight").reshape(out_features, in_features)
    b = _as_int64(bias, out_features, "bias")
    m = _as_int64(multiplier, out_features, "multiplier")
    s = _as_int64(shift, out_features, "shift")
    w_zp = _as_int64(zw, out_features, "zw")
    acc = b + (w - w_zp[:, None]) @ (x - int(zx))
    return _requantize_u8(_wrap_int32(acc)[:, None], m, s, zy).ravel()


def fc_fp32(
    input: ArrayLike,
    weight: ArrayLike,
    bias: ArrayLike,
    in_features: int,
    out_features: int,
) -> np.ndarray:
    """Single-precision fully connected layer; ``weight`` is laid out ``[out][in]``."""
    x = _as_float32(input, in_features, "input")
    w = _as_float32(weight, in_features * out_features, "weight").reshape(out_features, in_features)
    acc = _as_float32(bias, out_features, "bias").copy()
    for value, column in zip(x, w.T):
        acc += value * column
    return acc


def quantize_fp32_to_u8(input: ArrayLike, s: float, z: int) -> np.ndarray:
    """Quantize float values to uint8 with scale ``s`` and zero point ``z``."""
    x = np.asarray(input, dtype=np.float32).ravel()
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        scaled = x / np.float32(s)
    q = _round_half_away(scaled.astype(np.float64)).astype(np.int64) + int(z)
    return np.clip(q, 0, 255).astype(np.uint8)


def dequantize_u8_to_fp32(input: ArrayLike, s: float, z: int) -> np.ndarray:
    """Map uint8 values back to single-precision reals: s * (q - z)."""
    q = np.asarray(input).astype(np.int64).ravel()
    return (np.float32(s) * (q - int(z)).astype(np.float32)).astype(np.float32)