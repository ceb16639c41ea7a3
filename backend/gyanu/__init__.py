"""Gyanu tutoring core: access control and conversational memory."""
