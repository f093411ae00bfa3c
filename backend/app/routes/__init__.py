# Routes package init
"""
BarcodeSnap Backend — API Routes Package
==========================================

Route Inventory:
    - upload.py:  POST /upload               (scan barcodes in an image)
    - export.py:  POST /export-excel         (barcode list → .xlsx)
    - sheets.py:  POST /upload-google-sheet  (append to a Google Sheet)
    - health.py:  GET  /health               (service health check)

Routes stay thin: read the request, call a service, shape the response.
"""
