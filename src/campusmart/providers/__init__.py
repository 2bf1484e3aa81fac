"""Interfaces to the external services: auth, blob storage, text generation."""
