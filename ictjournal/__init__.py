"""
ICT Journal - Personal Forex Trading Journal

A self-hosted Python toolkit for importing and exporting ICT-style
trade logs and turning pasted ForexFactory calendar text into
structured, time-zoned events.
"""

__version__ = "0.1.0"
