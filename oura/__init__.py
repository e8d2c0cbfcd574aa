"""Event model, threaded pipeline stages and metadata mapping for following a Cardano chain."""

__version__ = "0.1.0"