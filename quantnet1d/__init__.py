"""Bit-exact reference model of a quantized uint8 1-D residual CNN and its fixed-shape kernels."""

__version__ = "0.1.0"
__all__ = ["quant", "layers", "model", "hls"]