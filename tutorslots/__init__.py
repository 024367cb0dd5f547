"""Teacher-published session slots with concurrency-safe booking."""
