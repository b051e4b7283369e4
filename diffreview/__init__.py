"""Line-anchored review conversations and comment overlay for file diffs."""

__version__ = "1.0.0"
