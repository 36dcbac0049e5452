"""
retrovox: 1991 Sound-Blaster-era speech degradation, procedural UI sounds and
chiptune music, rendered with torch.
"""

__version__ = "1.0.0"
