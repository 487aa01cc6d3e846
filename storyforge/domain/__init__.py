"""Pure domain services: patching and graph merging."""
