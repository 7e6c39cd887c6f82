"""CV email server: resume Q&A and email delivery over JSON-RPC."""

__version__ = "1.0.0"
