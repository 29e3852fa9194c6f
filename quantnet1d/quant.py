"""Scalar quantization arithmetic: affine (de)quantization and fixed-point requantization."""

from __future__ import annotations

import math

import numpy as np

INT8_MIN = -128
INT8_MAX = 127
UINT8_MIN = 0
UINT8_MAX = 255

_INT32_SPAN = 1 << 32
_INT32_HALF = 1 << 31
_MAX_TOTAL_SHIFT = 63


def _round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero."""
    if not math.isfinite(value):
        raise ValueError(f"cannot round non-finite value {value!r}")
    floor = math.floor(value)
    frac = value - floor
    if frac > 0.5 or (frac == 0.5 and value > 0):
        return floor + 1
    return floor


def _wrap_int32(value: int) -> int:
    """Reduce an integer to the signed 32-bit range with two's-complement wrap."""
    return (value + _INT32_HALF) % _INT32_SPAN - _INT32_HALF


def clamp_int8(x: int) -> int:
    """Saturate an integer to the int8 range."""
    if x > INT8_MAX:
        return INT8_MAX
    if x < INT8_MIN:
        return INT8_MIN
    return int(x)


def clamp_u8(x: int) -> int:
    """Saturate an integer to the uint8 range."""
    if x < UINT8_MIN:
        return UINT8_MIN
    if x > UINT8_MAX:
        return UINT8_MAX
    return int(x)


def dequant(q: int, s: float, z: int) -> float:
    """Map a quantized value back to real space: s * (q - z), in single precision."""
    return float(np.float32(s) * np.float32(int(q) - int(z)))


def quant(r: float, s: float, z: int) -> int:
    """Quantize a real value to int8 with scale ``s`` and zero point ``z``."""
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        scaled = np.float32(r) / np.float32(s)
    return clamp_int8(_round_half_away(float(scaled)) + int(z))


def requantize(acc: int, sx: float, sy: float, sz: float, zy: int) -> int:
    """Rescale an accumulator by sx * sy / sz and saturate to int8."""
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        m = np.float32(sx) * np.float32(sy) / np.float32(sz)
        scaled = np.float32(acc) * m
    return clamp_int8(_round_half_away(float(scaled)) + int(zy))


def quantize_multiplier(real_scale: float) -> tuple[int, int]:
    """Split a scale into a Q31 multiplier and a power-of-two exponent.

    Returns ``(multiplier, shift)`` with ``real_scale ~= multiplier * 2**(shift - 31)``.
    """
    scale = float(np.float32(real_scale))
    if scale == 0.0:
        return 0, 0
    fraction, exponent = math.frexp(scale)
    multiplier = _round_half_away(fraction * float(1 << 31))
    if multiplier == 1 << 31:
        multiplier //= 2
        exponent += 1
    return multiplier, exponent


def multiply_by_quantized_multiplier(x: int, multiplier: int, shift: int) -> int:
    """Scale ``x`` by a multiplier from :func:`quantize_multiplier` (shift is the exponent)."""
    total_shift = 31 - shift
    if total_shift > _MAX_TOTAL_SHIFT:
        raise ValueError(f"shift {shift} is out of range")
    prod = int(x) * int(multiplier)
    if total_shift > 0:
        rounding = 1 << (total_shift - 1)
        prod = prod + rounding if prod >= 0 else prod - rounding
        return _wrap_int32(prod >> total_shift)
    return _wrap_int32(prod << -total_shift)


def requantize_to_int32(acc: int, multiplier: int, shift: int) -> int:
    """Apply a per-channel fixed-point scale, rounding to nearest, to an accumulator."""
    total_shift = 31 + shift
    if not 0 <= total_shift <= _MAX_TOTAL_SHIFT:
        raise ValueError(f"shift {shift} is out of range")
    scaled = int(acc) * int(multiplier)
    if total_shift > 0:
        rounding = 1 << (total_shift - 1)
        scaled = scaled + rounding if scaled >= 0 else scaled - rounding
    return _wrap_int32(scaled >> total_shift)


def requantize_to_u8(acc: int, multiplier: int, shift: int, zy: int) -> int:
    """Requantize an accumulator and offset it by the output zero point, saturating to uint8."""
    return clamp_u8(_wrap_int32(requantize_to_int32(acc, multiplier, shift) + int(zy)))