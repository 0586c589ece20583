"""Profiles: named task buckets, one of which is always current."""
