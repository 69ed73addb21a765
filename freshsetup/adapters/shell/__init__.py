"""Local-system adapters: child processes, files, shell config, environment."""
