"""Carrier cost and utilization analysis for the network operations dashboard."""

__version__ = "0.1.0"
