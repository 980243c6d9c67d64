"""Domain models, error taxonomy and collaborator contracts."""
