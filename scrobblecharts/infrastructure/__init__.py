"""Infrastructure layer: Last.fm connector and command line interface."""
