"""soos-sca: client SDK and CLI for driving SOOS SCA scans."""

__version__ = "0.1.0"
