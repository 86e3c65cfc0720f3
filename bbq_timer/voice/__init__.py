"""Spoken completion announcements."""
