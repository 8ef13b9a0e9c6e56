"""Per-key sliding-window rate limiting for write-heavy and abuse-prone actions."""
