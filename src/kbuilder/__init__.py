"""Automated Linux kernel build with an integrated vendor Wi-Fi driver."""

__version__ = "0.1.0"
