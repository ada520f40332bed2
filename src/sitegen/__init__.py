"""SiteGen: business profile to website content generation."""

__version__ = "0.3.0"
