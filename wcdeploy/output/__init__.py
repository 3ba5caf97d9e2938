"""Human-facing console output."""
