"""Core — models, engine, services and workflow definitions."""
