"""Infrastructure: Redis-backed cache layers and monitoring."""
