"""Chat backend: user accounts, a global message board and real-time updates."""
