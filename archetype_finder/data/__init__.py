"""Packaged reference data: archetype profiles, image assets and the default question bank."""
