"""
Prompt Builder - SOAP Document Generation Prompts

This module constructs prompts for subtle SOAP document generation.
Prompts are designed to:
    1. Imply the target condition through findings, never by name
    2. Tailor the presentation to the patient's age, gender and race
    3. Produce the four SOAP headers the parser anchors on

On retries a RETRY GUIDANCE block tightens the constraints.

Pipeline Position:
    [PromptBuilder] → LLM client → parse_soap_document → DocumentValidator
     ^^^^^^^^^^^^^
     You are here

Author: Shubham Singh
Date: December 2025
"""


# =============================================================================
# STAGE 1: PROMPT TEMPLATES
# =============================================================================

SOAP_SYSTEM_INSTRUCTION = (
    "You are an experienced physician writing clinical documentation. Generate realistic "
    "SOAP notes that present clinical findings and symptoms without explicitly naming the "
    "underlying condition. The condition should be inferrable from the constellation of "
    "symptoms, signs, and clinical presentation, but never directly stated. Use proper "
    "medical terminology and realistic clinical scenarios."
)

SOAP_DOCUMENT_TEMPLATE = """Generate a realistic SOAP note for a {age}-year-old {gender} patient who presents with clinical findings consistent with {disease}.

CRITICAL REQUIREMENTS:
1. ABSOLUTELY DO NOT mention "{disease}", its abbreviations, or common synonyms anywhere in the document
2. Present symptoms, signs, and findings that would lead a clinician to suspect this condition WITHOUT naming it
3. Make the presentation subtle but clinically accurate with realistic vital signs
4. Use proper medical terminology and professional formatting throughout
5. Include specific numeric values (BP, HR, temp, etc.) for authenticity
6. Consider demographic factors (age: {age}, gender: {gender}, race: {race}) in your clinical presentation
7. Use appropriate pronouns and age-specific terminology{retry_guidance}

Format the response as a standard SOAP note with clear sections:

SUBJECTIVE:
[Patient's chief complaint, history of present illness, review of systems, past medical history, medications, allergies, social history - be specific and personal]

OBJECTIVE:
[Vital signs with specific numbers, physical examination findings, laboratory results if relevant, diagnostic findings]

ASSESSMENT:
[Clinical impression and differential diagnosis - describe the clinical picture WITHOUT naming the specific condition]

PLAN:
[Treatment recommendations, diagnostic workup, follow-up plans, patient education]

Make this a realistic clinical encounter that demonstrates the typical presentation patterns for this condition while maintaining complete clinical subtlety."""

RETRY_GUIDANCE_TEMPLATE = """

RETRY GUIDANCE (Attempt {attempt_number}):
- Be extra careful to avoid any mention of "{disease}" or related terms
- Focus on subtle clinical presentations and symptoms only
- Include more specific vital signs and measurements
- Use professional medical language throughout
- Ensure age-appropriate and gender-appropriate content"""


# =============================================================================
# STAGE 2: PROMPT BUILDER CLASS
# =============================================================================


class PromptBuilder:
    """
    Constructs prompts for SOAP document generation.

    Why it exists:
        1. Centralizes prompt logic for maintainability
        2. Keeps the negative constraints identical on every attempt
        3. Enables testing prompts without making LLM calls

    Example:
        >>> builder = PromptBuilder()
        >>> prompt = builder.build_generation_prompt("Asthma", 28, "Female", "White")
    """

    system_instruction = SOAP_SYSTEM_INSTRUCTION

    def build_generation_prompt(
        self, disease: str, age: int, gender: str, race: str, attempt: int = 0
    ) -> str:
        """
        Build the user prompt for one generation attempt.

        Args:
            disease: Condition the document must imply
            age: Patient age in years
            gender: Patient gender
            race: Patient race
            attempt: Zero-based attempt number; > 0 adds retry guidance

        Returns:
            Complete prompt string ready for the LLM
        """
        return SOAP_DOCUMENT_TEMPLATE.format(
            disease=disease,
            age=age,
            gender=gender,
            race=race,
            retry_guidance=self.build_retry_guidance(disease, attempt),
        )

    def build_retry_guidance(self, disease: str, attempt: int) -> str:
        """Stricter instructions for attempts after the first; empty otherwise."""
        if attempt <= 0:
            return ""
        return RETRY_GUIDANCE_TEMPLATE.format(attempt_number=attempt + 1, disease=disease)
