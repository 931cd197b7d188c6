import time


# BRUTEFORCE_SPEED -> seconds to wait between attempts
SPEED_DELAYS = {
    0: 60 * 5,
    1: 15,
    2: 1,
    3: 0.5,
    4: 0.1,
}


def sleep_interval(speed):
    """Delay for a bruteforce speed level; 5 or anything unknown means no delay."""
    try:
        return SPEED_DELAYS.get(int(speed), 0)
    except (TypeError, ValueError):
        return 0


def throttle(speed, cancel=None):
    """
    Pause the calling thread for the speed's delay. When a cancel event is
    given the pause ends as soon as it is set. Returns the delay used.
    """
    delay = sleep_interval(speed)
    if delay:
        if cancel is not None:
            cancel.wait(delay)
        else:
            time.sleep(delay)
    return delay
