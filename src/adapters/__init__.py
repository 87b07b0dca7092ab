"""Adapters binding the core to HTML snapshots, JSON settings and notifiers."""
