"""HTTP service exposing the voice agent and its configuration."""
