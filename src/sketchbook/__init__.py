"""Annotated hardware-project sketchbook: content loading, annotation extraction and site build."""
