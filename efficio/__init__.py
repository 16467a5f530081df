"""Account identity and session authentication for the Efficio list service."""
