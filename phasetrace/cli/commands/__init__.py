"""CLI commands registered into the main ``phasetrace`` group."""
