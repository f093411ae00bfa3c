"""
BarcodeSnap Backend — Abstract Engine Interfaces
==================================================

What:  Abstract base classes for the two third-party engines the pipeline
       depends on: image transcoding and barcode recognition.
How:   Concrete adapters (PillowTranscoder, ZXingDecoder) inherit from these.
       ImageNormalizer and BarcodeExtractor only talk to the interfaces, so
       tests can hand them fakes.
Who:   Implemented in image_service.py and barcode_service.py.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

from app.schemas.barcode import DecodedSymbol


class ImageTranscoder(ABC):
    """
    Converts an arbitrary input image file into the canonical decode-friendly form.

    Contract:
        - Reads `input_path`, writes a new file at `output_path`
        - Never modifies or deletes the input
        - Raises any engine exception as-is; the caller translates it
    """

    @abstractmethod
    def transcode(self, input_path: Path, output_path: Path) -> None:
        """Blocking call; run it off the event loop."""
        ...


class BarcodeDecoder(ABC):
    """
    Finds every barcode symbol in an encoded image.

    Contract:
        - Returns symbols in the order the engine reports them
        - Returns an empty list when nothing is found (not an error)
        - Raises on unreadable images or engine faults
    """

    @abstractmethod
    def decode(self, image_bytes: bytes) -> List[DecodedSymbol]:
        """Blocking call; run it off the event loop."""
        ...
