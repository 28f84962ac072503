"""Per-descriptor bookkeeping: socket detection, non-blocking flags and timeouts."""

from __future__ import annotations

import os
import socket
import stat
import threading
from typing import Optional

__all__ = ["FdCtx", "FdManager", "fd_manager"]

_INITIAL_SLOTS = 64


class FdCtx:
    """What is known about one file descriptor.

    Records whether it is a socket, whether it was made non-blocking by the
    library or by the user, and its receive and send timeouts in milliseconds
    (``None`` meaning no timeout).
    """

    def __init__(self, fd: int) -> None:
        self._fd = fd
        self._is_init = False
        self._is_socket = False
        self._sys_nonblock = False
        self._user_nonblock = False
        self._is_closed = False
        self._recv_timeout: Optional[int] = None
        self._send_timeout: Optional[int] = None
        self.init()

    def init(self) -> bool:
        """Inspect the descriptor; sockets are switched to non-blocking mode."""
        if self._is_init:
            return True
        try:
            info = os.fstat(self._fd)
        except OSError:
            self._is_init = False
            self._is_socket = False
        else:
            self._is_init = True
            self._is_socket = stat.S_ISSOCK(info.st_mode)

        if self._is_socket:
            if os.get_blocking(self._fd):
                os.set_blocking(self._fd, False)
            self._sys_nonblock = True
        else:
            self._sys_nonblock = False
        return self._is_init

    @property
    def fd(self) -> int:
        return self._fd

    @property
    def is_init(self) -> bool:
        return self._is_init

    @property
    def is_socket(self) -> bool:
        return self._is_socket

    @property
    def is_closed(self) -> bool:
        return self._is_closed

    @property
    def user_nonblock(self) -> bool:
        """Whether the user asked for non-blocking mode."""
        return self._user_nonblock

    @user_nonblock.setter
    def user_nonblock(self, value: bool) -> None:
        self._user_nonblock = bool(value)

    @property
    def sys_nonblock(self) -> bool:
        """Whether the library put the descriptor in non-blocking mode."""
        return self._sys_nonblock

    @sys_nonblock.setter
    def sys_nonblock(self, value: bool) -> None:
        self._sys_nonblock = bool(value)

    def set_timeout(self, kind: int, value: Optional[int]) -> None:
        """Set the receive timeout for ``socket.SO_RCVTIMEO``, else the send timeout."""
        if kind == socket.SO_RCVTIMEO:
            self._recv_timeout = value
        else:
            self._send_timeout = value

    def timeout(self, kind: int) -> Optional[int]:
        """Receive timeout for ``socket.SO_RCVTIMEO``, else the send timeout."""
        if kind == socket.SO_RCVTIMEO:
            return self._recv_timeout
        return self._send_timeout


class FdManager:
    """Thread-safe table of :class:`FdCtx` indexed by descriptor number."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._datas: list[Optional[FdCtx]] = [None] * _INITIAL_SLOTS

    def get(self, fd: int, auto_create: bool = False) -> Optional[FdCtx]:
        """Context of ``fd``; created on demand when ``auto_create`` is true."""
        if fd < 0:
            return None
        with self._lock:
            if fd < len(self._datas):
                ctx = self._datas[fd]
                if ctx is not None or not auto_create:
                    return ctx
            elif not auto_create:
                return None
            if fd >= len(self._datas):
                new_size = max(int(fd * 1.5), fd + 1)
                self._datas.extend([None] * (new_size - len(self._datas)))
            ctx = FdCtx(fd)
            self._datas[fd] = ctx
            return ctx

    def delete(self, fd: int) -> None:
        """Forget the context of ``fd``, if any."""
        with self._lock:
            if 0 <= fd < len(self._datas):
                self._datas[fd] = None


_manager = FdManager()


def fd_manager() -> FdManager:
    """The process-wide descriptor table."""
    return _manager