"""
BarcodeSnap Backend — Application Package Initializer
=======================================================

What: Marks the `app` directory as a Python package.
Who:  Used by uvicorn (`uvicorn app.main:app`) and pytest.

Architecture Note:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Pipeline & Exporters)   │  ← scan, export, Google Sheets
    ├─────────────────────────────────────┤
    │  Engine adapters (Pillow, zxing)    │  ← third-party capabilities
    ├─────────────────────────────────────┤
    │   Temporary storage (filesystem)    │  ← uploads / processed / exports
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
