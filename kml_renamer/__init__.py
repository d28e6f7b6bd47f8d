"""KML Placemark Renamer.

Renumbers the Placemark names inside selected KML/KMZ folders using a
sequential ``{prefix}{n}`` scheme and hands the modified file back for
download.
"""

__version__ = "0.1.0"
