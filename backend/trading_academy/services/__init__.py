"""Trusted store operations that run on the owner connection."""
