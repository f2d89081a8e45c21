from datetime import datetime, timezone
from google.protobuf.timestamp_pb2 import Timestamp


def convert_firestore_timestamp_to_iso(timestamp):
    """Convert Firestore timestamp to ISO format string"""
    if hasattr(timestamp, 'isoformat'):
        return timestamp.isoformat()
    elif isinstance(timestamp, Timestamp):
        return datetime.fromtimestamp(timestamp.seconds, tz=timezone.utc).isoformat()
    return timestamp


def clean_record(record: dict) -> dict:
    """Convert Firestore-specific types to JSON-serializable formats"""
    cleaned = {}
    for key, value in record.items():
        if isinstance(value, dict):
            cleaned[key] = clean_record(value)
        elif isinstance(value, list):
            cleaned[key] = [clean_record(item) if isinstance(item, dict) else convert_firestore_timestamp_to_iso(item) for item in value]
        else:
            cleaned[key] = convert_firestore_timestamp_to_iso(value)
    return cleaned
