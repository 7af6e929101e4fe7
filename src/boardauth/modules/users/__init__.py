"""User accounts and their refresh sessions."""
