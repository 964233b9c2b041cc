"""HTTP API for the HR engine."""
