"""
Iris Boundary Finder

Localizes the pupil and limbus (iris/sclera) boundaries in eye images
using gradient-direction voting and a Daugman-style boundary strength score.
"""

__version__ = "0.1.0"
__author__ = "Iris Finder Team"
