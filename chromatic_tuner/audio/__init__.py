"""Audio input, pitch detection and frame scheduling."""
