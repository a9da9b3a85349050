"""Push notification dispatch service for the delivery marketplace."""
