"""Data models for the reader site configuration store."""

from .recipe import AttributeRewrite, Configuration, RewriteRuleSet

__all__ = [
    "AttributeRewrite",
    "Configuration",
    "RewriteRuleSet",
]
