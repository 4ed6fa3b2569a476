"""showcase command-line interface."""
