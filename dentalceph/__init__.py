"""
DentalCeph - Cephalometric annotation for dental radiographs.

This package contains the main application modules:
- ui: Main window and open-image glue
- editor: Annotation engine, canvas and export
- services: Application services (config, logging)
"""

__version__ = "0.1.0"
