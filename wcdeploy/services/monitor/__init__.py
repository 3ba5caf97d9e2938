"""Deployment monitoring: remote status polling, shared status file, notifications."""
