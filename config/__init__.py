"""Configuration and data models for catalog matching."""
