"""Cooperative fibers, a FIFO fiber scheduler, a segmented byte array, network addresses and a file-descriptor registry."""

__version__ = "0.1.0"
__all__ = ["address", "bytearray", "fd_manager", "fiber", "simple_scheduler"]