from tripplanner.monitoring.metrics import get_metrics, record_request, record_trip

__all__ = ["get_metrics", "record_request", "record_trip"]
