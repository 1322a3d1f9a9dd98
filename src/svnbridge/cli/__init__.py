"""Command line interface for svnbridge."""
