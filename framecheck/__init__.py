"""framecheck: timing and format validation for audio/video capture pipelines"""

__version__ = "0.1.0"
