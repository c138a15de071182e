"""Sheet domain services: provenance, selection, versions, presets, export."""
