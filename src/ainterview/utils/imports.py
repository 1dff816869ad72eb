"""
Helpers for native audio libraries that write straight to fd 2.
"""
import os
import functools
from contextlib import contextmanager


# PortAudio probes JACK on Linux unless told not to
os.environ.setdefault("JACK_NO_START_SERVER", "1")

# gRPC-based Google clients (Speech, Firestore) log through absl otherwise
os.environ.setdefault("GRPC_VERBOSITY", "ERROR")
os.environ.setdefault("GLOG_minloglevel", "2")


@contextmanager
def quiet_native_stderr():
    """Point fd 2 at /dev/null for the duration of the block."""
    try:
        saved_fd = os.dup(2)
    except OSError:
        yield
        return

    null_fd = os.open(os.devnull, os.O_WRONLY)
    try:
        os.dup2(null_fd, 2)
        yield
    finally:
        os.dup2(saved_fd, 2)
        os.close(saved_fd)
        os.close(null_fd)


def with_suppressed_audio_warnings(func):
    """Run ``func`` with ALSA/JACK probe warnings hidden."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        with quiet_native_stderr():
            return func(*args, **kwargs)

    return wrapper
