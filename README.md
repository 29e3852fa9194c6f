# quantnet1d

A bit-exact reference model of a small quantized 1-D convolutional network built from a stem convolution, a residual block, a strided downsample and a second residual block. Activations are uint8, weights int8, biases int32, and every convolution is requantized per output channel with a fixed-point multiplier and shift.

The package has two implementations of the network:

- `quantnet1d.layers` and `quantnet1d.model`: general layers and a network whose residual blocks and downsample use kernel 5, padding 2.
- `quantnet1d.hls`: fixed-shape kernels whose residual blocks and downsample use kernel 3, padding 1, with the same integer arithmetic.

All tensors are flat numpy arrays; multi-dimensional layouts are given below in `[outer][inner]` order.

## Installation

```
pip install .
```

With the test tools:

```
pip install ".[test]"
```

## Quantization primitives

`quantnet1d.quant` works on single Python numbers:

- `quant(r, s, z)` rounds `r / s` (single precision, ties away from zero), adds `z` and saturates to int8; `dequant(q, s, z)` returns `s * (q - z)`.
- `requantize(acc, sx, sy, sz, zy)` scales an accumulator by `sx * sy / sz` and saturates to int8.
- `clamp_int8` and `clamp_u8` saturate an integer.
- `quantize_multiplier(real_scale)` returns `(multiplier, shift)` where `multiplier` is a Q31 fraction and `shift` the power-of-two exponent, so that `real_scale ≈ multiplier * 2**(shift - 31)`. A scale of zero gives `(0, 0)`.
- `multiply_by_quantized_multiplier(x, multiplier, shift)` applies such a pair: it divides `x * multiplier` by `2**(31 - shift)`.
- `requantize_to_int32(acc, multiplier, shift)` divides `acc * multiplier` by `2**(31 + shift)`; `requantize_to_u8` adds an output zero point and saturates to uint8.

The fixed-point functions add half the divisor (or subtract it, for a negative product) before an arithmetic right shift, and wrap the result to 32 bits. A shift that would move more than 63 bits, or below zero for `requantize_to_int32`, raises `ValueError`; so does rounding a non-finite value.

```python
from quantnet1d.quant import multiply_by_quantized_multiplier, quantize_multiplier, requantize_to_u8

multiplier, shift = quantize_multiplier(0.5)           # (1 << 30, 0)
multiply_by_quantized_multiplier(200, multiplier, shift)  # 100
requantize_to_u8(200, 1 << 30, 0, 10)                  # 110
```

## Layers

`quantnet1d.layers` returns uint8 arrays unless stated otherwise, and raises `ValueError` when an array does not have the expected number of elements.

- `conv_output_length(in_len, kernel, stride, padding)`
- `conv1d(...)`: input `[in_ch][in_len]`, weight `[kernel][in_ch][out_ch]`, per-channel bias, multiplier, shift and weight zero point; output `[out_ch][out_len]`. Padding positions take the input zero point.
- `relu(input, zy)`: values below `zy` become `zy`.
- `add(x1, x2, s1, s2, sy, z1, z2, zy)`: rescales each operand by `s1 / sy` and `s2 / sy` through `quantize_multiplier`, then sums and saturates.
- `fc(...)`: quantized fully connected layer, weight `[out][in]`.
- `fc_fp32(...)`: float32 fully connected layer, weight `[out][in]`, returning float32.
- `quantize_fp32_to_u8(input, s, z)` and `dequantize_u8_to_fp32(input, s, z)`.

## The network

`quantnet1d.model` groups parameters in dataclasses:

- `ConvParams`: weight, bias, multiplier, shift and weight zero points of one convolution; `run(...)` applies it.
- `StemParams` and `DownsampleParams`: a convolution with its input and output zero points and the ReLU zero point.
- `ResBlockParams`: two convolutions, their zero points, the scales and zero points of the main branch, skip branch and sum, and the final ReLU zero point.
- `CnnParams`: `stem`, `res1`, `down`, `res2`.

Forward functions:

- `stem_forward`: `[1][320]` → `[32][160]` (kernel 5, stride 2).
- `resblock_forward`: `[32][160]` → `[32][160]`.
- `downsample_forward`: `[32][160]` → `[64][80]` (kernel 5, stride 2).
- `resblock2_forward`: `[64][80]` → `[64][80]`.
- `residual_block(input, params, channels, length)`: the residual block for any size.
- `cnn_forward(input, params)`: all four stages, returning the 5120 values of the `[64][80]` feature map.

The residual block functions return a `ResBlockResult` holding `output` and the intermediate `conv1_out` (after its ReLU), `conv2_out` and `add_out`.

## Fixed-shape kernels

`quantnet1d.hls.config` defines the `ConvShape` of each stage (`STEM`, `RES`, `DOWN`, `RES2`), with `in_size()`, `out_size()` and `weight_size()`, and the matching `*_IN_SIZE` and `*_OUT_SIZE` constants.

`quantnet1d.hls.kernels` takes convolution parameters as `ConvWeights` and addition parameters as `AddQuant` (a multiplier, shift and zero point per operand, and the output zero point):

- `conv1d(input, weights, zx, zy, shape)` and the per-stage `stem_conv1d`, `res_conv1d`, `down_conv1d`, `res2_conv1d`.
- `relu(input, zy, size)` and `stem_relu`, `res_relu`, `down_relu`, `res2_relu`; the zero point is taken modulo 256.
- `add(input_a, input_b, quant, size)` and `add_stem`, `add_res`, `add_res2`, which scale each centred operand with `requantize_to_int32` arithmetic.

`quantnet1d.hls.blocks` composes them:

- `stem`, `downsample`: convolution then ReLU at the convolution's output zero point.
- `resblock`, `resblock2`: both convolutions and the addition use `zy` as output zero point, overriding `add_quant.zy`.
- `cnn(input, weights, zx, zy)`: the whole network with one pair of zero points; only the stem sees `zx`, and each residual addition halves both operands.
- `cnn_realdata(input, weights, scalars)`: the whole network with a zero point per convolution and full addition parameters per block. `weights` is a `CnnWeights`; `scalars` is a `RealDataScalars`, holding `RealDataZeroPoints` and two `AddQuant`. `RealDataScalars.from_list` builds it from 26 integers: the twelve zero points, then seven values for each addition.

## What the package does not do

It computes only. There is no command-line program and no reader for parameter or golden-output files: weights, zero points and inputs are passed in as arrays and numbers. It does not train or calibrate a network, and it does not include the final classifier as a stage of `cnn_forward`; `fc_fp32` is available to apply one to the features.

## Tests

```
pytest
```