"""Use cases — user intents wired end to end (config, logging, engine)."""
