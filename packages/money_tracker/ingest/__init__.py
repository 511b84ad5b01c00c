"""Notification ingestion and expense file import/export."""
