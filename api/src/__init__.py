"""THub LMS API."""
