"""
Even/odd partition routing.

Membership is a pure function of event identity, so the train/validation
split is reproducible without storing any assignment.
"""

EVEN, ODD = 0, 1
PARTITION_NAMES = ('data_0', 'data_1')


def route_event(event_id: int) -> int:
    """Return 0 (even partition) or 1 (odd partition) for an event id."""
    return int(event_id) % 2
