"""Shared utilities for wizard_validations."""
