"""Feed pagination, filtering and published state."""
