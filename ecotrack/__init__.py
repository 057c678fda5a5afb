"""EcoTrack: carbon footprint, air quality and progress tracking."""
