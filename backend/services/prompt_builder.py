"""All prompt templates for Gemini API calls."""

import json


def build_certificate_prompt(user_metadata: dict, document_text: str | None = None) -> str:
    """Call A: read a certificate back and cross-check the uploader's claims.

    For PDFs the extracted text is appended; for images the caller sends
    the inline image as a separate part after this text.
    """
    prompt = f"""You are a certificate analyzer AI. Your task is to analyze the provided certificate and return ONLY a JSON object with the specified structure. Do not include any additional text or explanations.

IMPORTANT: Your response must be a valid JSON object with exactly this structure:
{{
  "extracted_info": {{
    "title": "exact certificate title",
    "issuer": "issuing organization name",
    "issue_date": "YYYY-MM-DD",
    "credential_id": "ID if present, or null"
  }},
  "validation": {{
    "matches": ["fields that exactly match the user input"],
    "discrepancies": ["any differences found"]
  }},
  "suggested_skills": ["skill1", "skill2", "skill3"],
  "category": "most appropriate category"
}}

Remember:
- Return ONLY the JSON object
- Include ALL required fields
- Use null for missing values
- Format dates as YYYY-MM-DD
- Ensure arrays are never null (use empty array if none)

User provided information for comparison:
{json.dumps(user_metadata, indent=2)}
"""
    if document_text is not None:
        prompt += f"\n\nAnalyze this certificate text:\n{document_text}"
    return prompt


def build_skill_prompt(
    title: str,
    issuer: str,
    description: str | None = None,
    suggested_skills: list[str] | None = None,
    min_confidence: float = 0.7,
) -> str:
    """Call B: explicit and implicit skills gained from a certification."""
    hints = ""
    if suggested_skills:
        hints = f"\nSkills already suggested from the document: {', '.join(suggested_skills)}\n"

    return f"""Analyze this certification information and extract a list of relevant skills.
Consider both explicit skills mentioned and implicit skills that would be gained from this certification.

Certificate Information:
Title: {title}
Issuer: {issuer}
Description: {description or 'Not provided'}
{hints}
Respond with ONLY valid JSON (no markdown, no code fences) in this exact structure:
{{
  "skills": [
    {{
      "name": "skill name",
      "level": "beginner/intermediate/advanced",
      "category": "category name",
      "confidence": <number 0.0 to 1.0>
    }}
  ]
}}

Only include skills with confidence > {min_confidence}"""
