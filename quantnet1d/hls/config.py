"""Fixed layer geometry of the accelerator pipeline."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ConvShape:
    """Geometry of a 1-D convolution stage with a fixed output length."""

    in_ch: int
    in_len: int
    out_ch: int
    kernel: int
    stride: int
    padding: int
    out_len: int

    def __post_init__(self) -> None:
        for name in ("in_ch", "in_len", "out_ch", "kernel", "stride", "out_len"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.padding < 0:
            raise ValueError(f"padding must not be negative, got {self.padding}")

    def in_size(self) -> int:
        """Number of input activations, ``in_ch * in_len``."""
        return self.in_ch * self.in_len

    def out_size(self) -> int:
        """Number of output activations, ``out_ch * out_len``."""
        return self.out_ch * self.out_len

    def weight_size(self) -> int:
        """Number of weights, ``kernel * in_ch * out_ch``."""
        return self.kernel * self.in_ch * self.out_ch


STEM = ConvShape(
    in_ch=1, in_len=320, out_ch=32, kernel=5, stride=2, padding=2, out_len=160
)

RES = ConvShape(
    in_ch=STEM.out_ch,
    in_len=STEM.out_len,
    out_ch=STEM.out_ch,
    kernel=3,
    stride=1,
    padding=1,
    out_len=STEM.out_len,
)

DOWN = ConvShape(
    in_ch=RES.out_ch,
    in_len=RES.out_len,
    out_ch=64,
    kernel=3,
    stride=2,
    padding=1,
    out_len=RES.out_len // 2,
)

RES2 = ConvShape(
    in_ch=DOWN.out_ch,
    in_len=DOWN.out_len,
    out_ch=DOWN.out_ch,
    kernel=3,
    stride=1,
    padding=1,
    out_len=DOWN.out_len,
)

STEM_IN_SIZE = STEM.in_size()
STEM_OUT_SIZE = STEM.out_size()
RES_IN_SIZE = RES.in_size()
RES_OUT_SIZE = RES.out_size()
DOWN_IN_SIZE = DOWN.in_size()
DOWN_OUT_SIZE = DOWN.out_size()
RES2_IN_SIZE = RES2.in_size()
RES2_OUT_SIZE = RES2.out_size()