"""Fixed-shape fixed-point kernels, layer geometry and blocks of the quantized CNN."""

__all__ = ["config", "kernels", "blocks"]