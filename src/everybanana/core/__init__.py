"""
Core modules for everybanana.

This package contains the core business logic for:
- Configuration management
- Uploaded image handling
- Image generation (the remote call)
- Request orchestration and UI state
- Saving results
"""
