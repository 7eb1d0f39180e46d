"""Hardware-free controller emulation for tests and manual runs."""
