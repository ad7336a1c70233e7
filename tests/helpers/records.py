from __future__ import annotations


def get_record_by_event(caplog, event_name: str):
    """
    Return the first log record whose 'event' attribute equals event_name.
    Raise StopIteration if not found to make failures explicit.
    """
    return next(r for r in caplog.records if getattr(r, "event", "") == event_name)


def records_by_event(caplog, event_name: str) -> list:
    return [r for r in caplog.records if getattr(r, "event", "") == event_name]
