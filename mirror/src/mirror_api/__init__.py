"""Compact index mirror for a RubyGems-style registry."""
