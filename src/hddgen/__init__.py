"""hddgen: create zero-filled fixed-size disk images with progress and cancel."""

__version__ = "0.1.0"
