"""Domain layer: models, validation rules and collaborator contracts."""
