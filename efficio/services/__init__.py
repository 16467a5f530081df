"""Storage-backed services: identifiers, credentials, sessions, resources."""
