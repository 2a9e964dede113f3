"""Audio decoding and preprocessing."""
