"""External content synchronization: fetch, transform, write, fall back."""
