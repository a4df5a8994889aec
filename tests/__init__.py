"""
Tests for the India boundaries / roads walkthrough.

Test modules:
- test_download: archive download and unpacking (network mocked)
- test_load: shapefile loading, layer description, admin level choice
- test_plots: static and interactive maps
- test_selection: areas and representative state selection
- test_aggregation: spatial filter, road statistics, attaching results
- test_walkthrough: end-to-end run over shapefiles on disk

Running Tests:
    pytest
    pytest tests/test_selection.py -v
"""
