"""Read-only collaborators owned by the surrounding record-management shell."""
