"""Prescription image scanning via Groq's vision model.

Best-effort collaborator: an image goes in, a list of medicine names comes
out. Any failure yields an empty list. Nothing here reads or changes stock.
"""

from .prescription_parser import scan_prescription

__all__ = ["scan_prescription"]
