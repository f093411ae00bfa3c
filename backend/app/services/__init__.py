# Services package init
"""
BarcodeSnap Backend — Services Layer
======================================

Service Inventory:
    - StorageService:    scratch directories, unique paths, best-effort cleanup
    - ImageNormalizer:   grayscale → sharpen → fit 1600×1400 → PNG (Pillow)
    - BarcodeExtractor:  all barcodes in an image, detection order (zxing-cpp)
    - ScanService:       upload pipeline tying the three above together
    - ExportService:     barcode list → .xlsx, persisted or streamed (openpyxl)
    - SheetsConnector:   validated appends to Google Sheets
"""
