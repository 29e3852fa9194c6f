[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "quantnet1d"
version = "0.1.0"
description = "Bit-exact reference model of a quantized uint8 1-D residual CNN and its fixed-shape fixed-point kernels"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "quantization",
    "int8",
    "uint8",
    "cnn",
    "conv1d",
    "fixed-point",
    "reference-model",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = [
    "pytest",
    "hypothesis",
]

[tool.hatch.build.targets.wheel]
packages = ["quantnet1d"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
