"""Infrastructure adapters: Redis key-value store."""
