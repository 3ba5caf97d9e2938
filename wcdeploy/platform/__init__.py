"""Operating-system boundaries: subprocesses, platform detection, files."""
