"""Units of work invoked by the HTTP entry points.

- rename_placemarks: the folder/placemark renumbering transform
- process_upload: KML/KMZ container handling around the transform
"""
