"""Pipeline blocks built from the fixed-shape kernels: stem, residual blocks and the whole network."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import ClassVar, Iterable

import numpy as np
from numpy.typing import ArrayLike

from quantnet1d.hls import kernels
from quantnet1d.hls.kernels import AddQuant, ConvWeights

# 0.5 in Q31; the synthetic pipeline halves both residual operands.
_HALF_Q31 = 1 << 30


@dataclass
class CnnWeights:
    """Weights of every convolution in the network."""

    stem: ConvWeights
    res1_conv1: ConvWeights
    res1_conv2: ConvWeights
    down: ConvWeights
    res2_conv1: ConvWeights
    res2_conv2: ConvWeights


@dataclass(frozen=True)
class RealDataZeroPoints:
    """Input and output zero points of each convolution in the calibrated network."""

    stem_zx: int
    stem_zy: int
    res1_conv1_zx: int
    res1_conv1_zy: int
    res1_conv2_zx: int
    res1_conv2_zy: int
    down_zx: int
    down_zy: int
    res2_conv1_zx: int
    res2_conv1_zy: int
    res2_conv2_zx: int
    res2_conv2_zy: int


@dataclass(frozen=True)
class RealDataScalars:
    """All scalar quantization parameters of the calibrated network."""

    zero_points: RealDataZeroPoints
    res1_add: AddQuant
    res2_add: AddQuant

    COUNT: ClassVar[int] = 26

    @classmethod
    def from_list(cls, values: Iterable[int]) -> RealDataScalars:
        """Build from the flat list of 26 values.

        The order is the twelve zero points, then seven values for each residual
        addition: multiplier_a, shift_a, za, multiplier_b, shift_b, zb, zy.
        """
        items = [int(v) for v in values]
        if len(items) != cls.COUNT:
            raise ValueError(f"expected {cls.COUNT} scalars, got {len(items)}")
        return cls(
            zero_points=RealDataZeroPoints(*items[:12]),
            res1_add=AddQuant(*items[12:19]),
            res2_add=AddQuant(*items[19:26]),
        )


def stem(input: ArrayLike, weights: ConvWeights, zx: int, zy: int) -> np.ndarray:
    """Stem convolution followed by ReLU at the convolution's output zero point."""
    conv_out = kernels.stem_conv1d(input, weights, zx, zy)
    return kernels.stem_relu(conv_out, zy)


def downsample(input: ArrayLike, weights: ConvWeights, zx: int, zy: int) -> np.ndarray:
    """Strided downsampling convolution followed by ReLU."""
    conv_out = kernels.down_conv1d(input, weights, zx, zy)
    return kernels.down_relu(conv_out, zy)


def resblock(
    input: ArrayLike,
    weights1: ConvWeights,
    weights2: ConvWeights,
    add_quant: AddQuant,
    zx: int,
    zy: int,
) -> np.ndarray:
    """First residual block; both convolutions and the addition output at ``zy``."""
    skip = np.asarray(input)
    conv1_out = kernels.res_conv1d(skip, weights1, zx, zy)
    relu1_out = kernels.res_relu(conv1_out, zy)
    conv2_out = kernels.res_conv1d(relu1_out, weights2, zx, zy)
    add_out = kernels.add_res(conv2_out, skip, replace(add_quant, zy=int(zy)))
    return kernels.res_relu(add_out, zy)


def resblock2(
    input: ArrayLike,
    weights1: ConvWeights,
    weights2: ConvWeights,
    add_quant: AddQuant,
    zx: int,
    zy: int,
) -> np.ndarray:
    """Second residual block; both convolutions and the addition output at ``zy``."""
    skip = np.asarray(input)
    conv1_out = kernels.res2_conv1d(skip, weights1, zx, zy)
    relu1_out = kernels.res2_relu(conv1_out, zy)
    conv2_out = kernels.res2_conv1d(relu1_out, weights2, zx, zy)
    add_out = kernels.add_res2(conv2_out, skip, replace(add_quant, zy=int(zy)))
    return kernels.res2_relu(add_out, zy)


def cnn(input: ArrayLike, weights: CnnWeights, zx: int, zy: int) -> np.ndarray:
    """Whole network with a single pair of zero points.

    Only the stem sees ``zx``; every later stage uses ``zy`` for input and output,
    and each residual addition halves both operands.
    """
    zy = int(zy)
    add_quant = AddQuant(_HALF_Q31, 0, zy, _HALF_Q31, 0, zy, zy)
    stem_out = stem(input, weights.stem, zx, zy)
    res1_out = resblock(stem_out, weights.res1_conv1, weights.res1_conv2, add_quant, zy, zy)
    down_out = downsample(res1_out, weights.down, zy, zy)
    return resblock2(down_out, weights.res2_conv1, weights.res2_conv2, add_quant, zy, zy)


def cnn_realdata(input: ArrayLike, weights: CnnWeights, scalars: RealDataScalars) -> np.ndarray:
    """Whole network with calibrated zero points and addition parameters per stage."""
    zp = scalars.zero_points

    stem_conv = kernels.stem_conv1d(input, weights.stem, zp.stem_zx, zp.stem_zy)
    stem_out = kernels.stem_relu(stem_conv, zp.stem_zy)

    res1_c1 = kernels.res_conv1d(stem_out, weights.res1_conv1, zp.res1_conv1_zx, zp.res1_conv1_zy)
    res1_r1 = kernels.res_relu(res1_c1, zp.res1_conv1_zy)
    res1_c2 = kernels.res_conv1d(res1_r1, weights.res1_conv2, zp.res1_conv2_zx, zp.res1_conv2_zy)
    res1_add = kernels.add_res(res1_c2, stem_out, scalars.res1_add)
    res1_out = kernels.res_relu(res1_add, scalars.res1_add.zy)

    down_conv = kernels.down_conv1d(res1_out, weights.down, zp.down_zx, zp.down_zy)
    down_out = kernels.down_relu(down_conv, zp.down_zy)

    res2_c1 = kernels.res2_conv1d(down_out, weights.res2_conv1, zp.res2_conv1_zx, zp.res2_conv1_zy)
    res2_r1 = kernels.res2_relu(res2_c1, zp.res2_conv1_zy)
    res2_c2 = kernels.res2_conv1d(res2_r1, weights.res2_conv2, zp.res2_conv2_zx, zp.res2_conv2_zy)
    res2_add = kernels.add_res2(res2_c2, down_out, scalars.res2_add)
    return kernels.res2_relu(res2_add, scalars.res2_add.zy)