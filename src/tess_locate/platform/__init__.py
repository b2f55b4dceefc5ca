"""Platform-facing plumbing: footprint cache and file formats."""
