"""
Core functionality for the Show Notes Generator.

This package contains modules for fetching YouTube captions and metadata,
transcribing audio, generating episode content, exporting episodes and
tracking usage.
"""
