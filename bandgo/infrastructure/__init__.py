"""Infrastructure layer - adapters implementing the application ports."""
