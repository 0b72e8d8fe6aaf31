"""
In-process counters for observability. Process-local; for multi-worker use external metrics (e.g. Prometheus).
"""
import threading

# Submissions decoded for a question that had no stored answer mapping (data-integrity warning).
missing_mapping_decodes_total: int = 0
_missing_mapping_lock = threading.Lock()


def increment_missing_mapping_decodes_total(n: int = 1) -> int:
    """Add n to missing_mapping_decodes_total; return new value. Thread-safe."""
    global missing_mapping_decodes_total
    with _missing_mapping_lock:
        missing_mapping_decodes_total += n
        return missing_mapping_decodes_total
