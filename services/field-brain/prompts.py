"""Instruction contract sent with every document chunk.

The model proposes candidates only. Confidence and relationships are
computed locally and are deliberately absent from the requested shape.
"""

SYSTEM_PROMPT = (
    "You are a document analysis expert. Analyze documents to identify "
    "fillable fields that users would need to complete. Return only valid JSON."
)

_JSON_SUFFIX = """

CRITICAL OUTPUT RULES:
- Return ONLY a single valid JSON object of the form {"fields": [ ... ]}.
- Do NOT include any thinking, preamble, explanation, or markdown formatting.
- Do NOT wrap in code fences. Just raw JSON.
- If the text contains no fillable fields, return {"fields": []}."""

EXTRACTION_PROMPT = """Analyze this document excerpt and identify all fillable fields that would typically need to be completed by a user.

Document excerpt:
{chunk}

Some fields may have a legend; include it in both the name and the replacement.
Examples of fields to identify (not limited to):
- Names (first name, last name, full name)
- Addresses (street, city, state, zip)
- Contact information (phone, email)
- Dates (birth date, signature date, etc.)
- Numbers (SSN, ID numbers, amounts)
- Text fields (descriptions, comments)
- Checkboxes or selections

For each field return exactly these keys:

{
  "name": "field_name",
  "type": "text|number|date|email|phone|address|checkbox",
  "description": "Brief description of what this field is for",
  "placeholder": "[[FIELD_NAME]]",
  "required": true,
  "replacement": "literal text from the excerpt that locates the field, including whitespace and underscores, as precise as possible"
}""" + _JSON_SUFFIX


def build_extraction_prompt(chunk: str) -> str:
    """Render the per-chunk user prompt."""
    return EXTRACTION_PROMPT.replace("{chunk}", chunk)
