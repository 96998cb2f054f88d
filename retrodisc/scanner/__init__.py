"""Dump file scanning and hashing."""
