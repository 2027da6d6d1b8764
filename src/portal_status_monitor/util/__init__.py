from .dates import find_sync_timestamp, format_report_timestamp

__all__ = ["find_sync_timestamp", "format_report_timestamp"]
