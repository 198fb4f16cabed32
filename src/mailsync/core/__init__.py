"""Core layer: domain models, local message store and mail source adapters."""
