"""Settings package. Load a concrete module: backend.settings.dev / prod / test."""
