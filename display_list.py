import logging

logger = logging.getLogger('DynamicResolution')

kCGErrorSuccess = 0

# Initial buffer size handed to CGGetOnlineDisplayList; grown while it fills up.
INITIAL_CAPACITY = 16
MAX_CAPACITY = 1024


def _cg_get_online_display_list(capacity):
    """Returns (error, display_ids, count) from CoreGraphics."""
    from Quartz import CGGetOnlineDisplayList
    return CGGetOnlineDisplayList(capacity, None, None)


def online_display_ids():
    """
    Returns the ids of all online displays, in the order CoreGraphics reports them.
    The buffer is doubled and the call repeated whenever every slot came back filled,
    so large display setups are not truncated.
    """
    capacity = INITIAL_CAPACITY
    while True:
        error, displays, count = _cg_get_online_display_list(capacity)
        if error != kCGErrorSuccess:
            logger.error(f"CGGetOnlineDisplayList failed with CGError {error}")
            return []

        ids = [int(d) for d in list(displays or ())[:count]]
        if count < capacity or capacity >= MAX_CAPACITY:
            if count >= MAX_CAPACITY:
                logger.warning(f"Display list capped at {MAX_CAPACITY} entries.")
            logger.debug(f"Online displays: {ids}")
            return ids

        capacity *= 2
        logger.debug(f"Display buffer full, retrying with capacity {capacity}")
