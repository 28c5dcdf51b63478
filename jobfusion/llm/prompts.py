"""LLM prompts for job field extraction."""

SYSTEM_PROMPT = """You extract structured data from job postings.
Answer with JSON only. Never invent values that are not in the text."""

EXTRACT_FIELDS_PROMPT = """Extract job posting information from the following text.

=== FIELDS ===

- position: the job title/position name
- company: the company/organization name
- location: job location (city, state, country, or "Remote")
- salary: salary range if mentioned (include currency)

If a field is not found in the text, use an empty string.
{context}
=== OUTPUT ===

Return ONLY a JSON object with the keys position, company, location, salary.

===BEGIN_UNTRUSTED_TEXT===
{text}
===END_UNTRUSTED_TEXT===
"""

# Appended when earlier stages already found something
CURRENT_VALUES_CONTEXT = """
=== CURRENT BEST GUESSES (may be wrong) ===

{values}
Confirm them if the text supports them, otherwise replace them.
"""
