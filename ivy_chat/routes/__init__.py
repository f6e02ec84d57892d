"""Blueprints served by the development server."""
