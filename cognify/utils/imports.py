"""
Helpers for keeping PortAudio's native chatter off the terminal.
"""
import functools
import os
from contextlib import contextmanager


# PortAudio tries JACK and ALSA on open and prints to stderr when they are missing
os.environ.setdefault("JACK_NO_START_SERVER", "1")

# The genai client pulls in grpc, which logs through glog
os.environ.setdefault("GRPC_VERBOSITY", "ERROR")
os.environ.setdefault("GLOG_minloglevel", "2")


@contextmanager
def quiet_native_stderr():
    """
    Point file descriptor 2 at /dev/null for the duration of the block.

    Native libraries write straight to the descriptor, so replacing
    ``sys.stderr`` is not enough. If the descriptor cannot be swapped the
    block simply runs with stderr untouched.
    """
    try:
        saved_fd = os.dup(2)
    except OSError:
        yield
        return

    null_fd = os.open(os.devnull, os.O_WRONLY)
    try:
        os.dup2(null_fd, 2)
    finally:
        os.close(null_fd)
    try:
        yield
    finally:
        os.dup2(saved_fd, 2)
        os.close(saved_fd)


def with_suppressed_audio_warnings(func):
    """Decorator form of quiet_native_stderr for device open/close calls."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        with quiet_native_stderr():
            return func(*args, **kwargs)
    return wrapper
