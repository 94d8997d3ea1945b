"""Thread-affinity dispatch and the owner-side monitor loop."""
