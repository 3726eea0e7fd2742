[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "jsquelch"
version = "0.1.0"
description = "Spectral voice squelch building blocks: moving statistics, overlapped FFTs, SNR estimation, AGC and an elastic loopback buffer"
requires-python = ">=3.10"
dependencies = ["numpy"]
keywords = ["dsp", "squelch", "noise reduction", "snr", "agc", "audio", "fft"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["jsquelch"]

[tool.pytest.ini_options]
addopts = "-ra"
