"""Request controllers; each returns ``(data, status, headers)``."""
