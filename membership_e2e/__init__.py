"""End-to-end acceptance suite for the membership dashboard."""
