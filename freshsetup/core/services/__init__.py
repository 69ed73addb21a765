"""Stateless helpers: shell-config text surgery, platform detection."""
