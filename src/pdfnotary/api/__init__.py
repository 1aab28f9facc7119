"""HTTP surface for pdfnotary."""
