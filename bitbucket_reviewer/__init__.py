"""Bitbucket PR Reviewer: AI-assisted code review for Bitbucket pull requests."""

__version__ = "0.1.0"
