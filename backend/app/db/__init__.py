"""Database engine, session and retry helpers."""
