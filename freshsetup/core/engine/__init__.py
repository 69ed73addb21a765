"""Provisioning engine: executor, probe, backup, gate, verification, orchestrator."""
