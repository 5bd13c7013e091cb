"""Levelled background logging, small utilities and dataclass field copying."""

__version__ = "0.1.0"