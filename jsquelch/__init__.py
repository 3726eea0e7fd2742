"""Spectral voice squelch blocks: moving statistics, overlapped FFTs, SNR estimation, AGC and a loopback buffer."""

__version__ = "0.1.0"
__all__ = ["moving", "spectral", "estimators", "agc", "loopback"]