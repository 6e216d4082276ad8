"""Orchestration workflows that combine pure parsing with runtime services."""
