"""Business logic for auth tokens."""
