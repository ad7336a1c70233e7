from .records import get_record_by_event, records_by_event

__all__ = ["get_record_by_event", "records_by_event"]
