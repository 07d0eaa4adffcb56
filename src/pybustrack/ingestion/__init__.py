"""Payload normalization at the wire boundary."""
