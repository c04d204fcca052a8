"""Note capture backend: image OCR, AI cleanup and ordered note sets."""
