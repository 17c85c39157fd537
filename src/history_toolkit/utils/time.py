import time


def get_current_timestamp() -> int:
    """Return the current time as integer unix seconds."""
    return int(time.time())
