"""
Vision prompt for prescription scanning — name extraction ONLY.

The model reads the image and lists medicine names. It does not suggest
dosages, substitutes or quantities, and it answers with JSON only so the
output can be validated against PrescriptionScan.
"""

PRESCRIPTION_PROMPT = """You are an expert pharmacist. Analyze the attached image of a medical prescription.
The handwriting may be messy. Use your knowledge of common medicines to decipher the text.
Identify only the names of the medicines prescribed and list them.

RULES:
- Output ONLY valid JSON, no explanation, no markdown.
- Include brand or generic names exactly as you read them, with strength if written (e.g. "Dolo 650").
- Do NOT include dosage instructions, frequencies, or patient details.
- If the image is not a prescription or nothing is legible, return an empty list.

OUTPUT FORMAT:
{"medicines": ["<name>", "<name>"]}
"""


def build_prompt() -> str:
    return PRESCRIPTION_PROMPT
