"""
VoiceRelay - reliable delivery of transcribed voice data to a remote collector.
"""

__version__ = "0.1.0"
