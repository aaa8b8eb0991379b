"""PTP/MTP wire format, USB bulk-pipe framing and session handling."""

__version__ = "0.1.0"