"""Quantized 1-D CNN: stem, residual blocks, downsampling and the full feature extractor."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike

from quantnet1d import layers

STEM_IN_CH = 1
STEM_IN_LEN = 320
STEM_OUT_CH = 32
STEM_KERNEL = 5
STEM_STRIDE = 2
STEM_PADDING = 2
STEM_OUT_LEN = 160
STEM_OUT_SIZE = STEM_OUT_CH * STEM_OUT_LEN

DOWN_IN_CH = 32
DOWN_IN_LEN = 160
DOWN_OUT_CH = 64
DOWN_OUT_LEN = 80
DOWN_KERNEL = 5
DOWN_STRIDE = 2
DOWN_PADDING = 2
DOWN_SIZE = DOWN_OUT_CH * DOWN_OUT_LEN

RES_CH = 32
RES_LEN = 160
RES2_CH = 64
RES2_LEN = 80
RES_KERNEL = 5
RES_STRIDE = 1
RES_PADDING = 2


@dataclass
class ConvParams:
    """Quantized convolution weights, laid out ``[kernel][in_ch][out_ch]``, with per-channel data."""

    weight: ArrayLike
    bias: ArrayLike
    multiplier: ArrayLike
    shift: ArrayLike
    weight_zp: ArrayLike

    def run(
        self,
        input: ArrayLike,
        in_ch: int,
        out_ch: int,
        in_len: int,
        kernel: int,
        stride: int,
        padding: int,
        zx: int,
        zy: int,
    ) -> np.ndarray:
        """Apply the convolution to ``input``."""
        return layers.conv1d(
            input,
            self.weight,
            self.bias,
            in_ch,
            out_ch,
            in_len,
            kernel,
            stride,
            padding,
            self.multiplier,
            self.shift,
            zx,
            self.weight_zp,
            zy,
        )


@dataclass
class StemParams:
    """Parameters of the stem: a strided convolution followed by ReLU."""

    conv: ConvParams
    conv_zx: int
    conv_zy: int
    relu_zy: int


@dataclass
class DownsampleParams:
    """Parameters of the downsampling stage: a strided convolution followed by ReLU."""

    conv: ConvParams
    conv_zx: int
    conv_zy: int
    relu_zy: int


@dataclass
class ResBlockParams:
    """Parameters of a residual block: two convolutions, a skip addition and a final ReLU."""

    conv1: ConvParams
    conv2: ConvParams
    conv1_zx: int
    conv1_zy: int
    conv2_zx: int
    conv2_zy: int
    s_main: float
    s_skip: float
    s_add: float
    z_main: int
    z_skip: int
    z_add: int
    relu_zy: int


@dataclass
class ResBlockResult:
    """Output of a residual block together with its intermediate tensors."""

    output: np.ndarray
    conv1_out: np.ndarray
    conv2_out: np.ndarray
    add_out: np.ndarray


@dataclass
class CnnParams:
    """Parameters of the whole network: stem, first residual block, downsample, second block."""

    stem: StemParams
    res1: ResBlockParams
    down: DownsampleParams
    res2: ResBlockParams


def stem_forward(input: ArrayLike, params: StemParams) -> np.ndarray:
    """Run the stem on a ``[1][320]`` input, giving a flat ``[32][160]`` uint8 tensor."""
    conv_out = params.conv.run(
        input,
        STEM_IN_CH,
        STEM_OUT_CH,
        STEM_IN_LEN,
        STEM_KERNEL,
        STEM_STRIDE,
        STEM_PADDING,
        params.conv_zx,
        params.conv_zy,
    )
    return layers.relu(conv_out, params.relu_zy)


def downsample_forward(input: ArrayLike, params: DownsampleParams) -> np.ndarray:
    """Run the downsampling stage on ``[32][160]``, giving a flat ``[64][80]`` uint8 tensor."""
    conv_out = params.conv.run(
        input,
        DOWN_IN_CH,
        DOWN_OUT_CH,
        DOWN_IN_LEN,
        DOWN_KERNEL,
        DOWN_STRIDE,
        DOWN_PADDING,
        params.conv_zx,
        params.conv_zy,
    )
    return layers.relu(conv_out, params.relu_zy)


def residual_block(
    input: ArrayLike, params: ResBlockParams, channels: int, length: int
) -> ResBlockResult:
    """Residual block over a ``[channels][length]`` tensor with kernel 5, stride 1, padding 2."""
    skip = np.asarray(input).astype(np.uint8).ravel()
    conv1_out = params.conv1.run(
        skip,
        channels,
        channels,
        length,
        RES_KERNEL,
        RES_STRIDE,
        RES_PADDING,
        params.conv1_zx,
        params.conv1_zy,
    )
    conv1_out = layers.relu(conv1_out, params.conv1_zy)
    conv2_out = params.conv2.run(
        conv1_out,
        channels,
        channels,
        length,
        RES_KERNEL,
        RES_STRIDE,
        RES_PADDING,
        params.conv2_zx,
        params.conv2_zy,
    )
    add_out = layers.add(
        conv2_out,
        skip,
        params.s_main,
        params.s_skip,
        params.s_add,
        params.z_main,
        params.z_skip,
        params.z_add,
    )
    output = layers.relu(add_out, params.relu_zy)
    return ResBlockResult(
        output=output, conv1_out=conv1_out, conv2_out=conv2_out, add_out=add_out
    )


def resblock_forward(input: ArrayLike, params: ResBlockParams) -> ResBlockResult:
    """First residual block, over ``[32][160]``."""
    return residual_block(input, params, RES_CH, RES_LEN)


def resblock2_forward(input: ArrayLike, params: ResBlockParams) -> ResBlockResult:
    """Second residual block, over ``[64][80]``."""
    return residual_block(input, params, RES2_CH, RES2_LEN)


def cnn_forward(input: ArrayLike, params: CnnParams) -> np.ndarray:
    """Run stem, res1, downsample and res2; return the flat ``[64][80]`` uint8 features."""
    stem_out = stem_forward(input, params.stem)
    res1_out = resblock_forward(stem_out, params.res1).output
    down_out = downsample_forward(res1_out, params.down)
    return resblock2_forward(down_out, params.res2).output.copy()