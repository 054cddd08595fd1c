"""Machine-local and remote artifact caches."""
