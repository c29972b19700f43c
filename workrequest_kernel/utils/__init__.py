"""Utility functions for the work request kernel."""

from workrequest_kernel.utils.hashing import canonicalize_json, hash_payload

__all__ = ["canonicalize_json", "hash_payload"]
