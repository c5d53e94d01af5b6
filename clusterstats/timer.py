import time

from loguru import logger


class Timer:
    """Context manager logging the wall clock time of a block.

    Use as:
        with Timer("populate"):
            stats.populate(cluster_model, constraint)

    The elapsed seconds stay readable on ``interval`` after the block exits.
    """

    def __init__(self, name: str = ""):
        # pre-format named output so we don't need two format strings
        self.name = f"[{name}] " if name else ""
        self.start = 0.0
        self.interval = 0.0

    def __enter__(self):
        # perf_counter, not process_time: include time spent waiting
        self.start = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.interval = time.perf_counter() - self.start
        # depth=1 so the caller's module/line is shown instead of Timer.__exit__
        logger.opt(depth=1).debug("{}Duration: {:,.4f}", self.name, self.interval)
