"""
Prompt Builder - Treatment Plan and Diagnosis Requests

This module turns an Assessment (or an Examination) into a GenerationRequest
the generative service can answer under the structured-output contract.
Prompts are designed to:
    1. Declare the exact JSON shape the validator will enforce
    2. Embed the canonical assessment document unchanged
    3. Frame the task around root causes and compensation patterns

Pipeline Position:
    AssessmentAggregator → [PlanRequestBuilder] → LLM Client → SchemaValidator
                            ^^^^^^^^^^^^^^^^^^
                            You are here

Author: Shubham Singh
Date: October 2026
"""

from treatment_plan_generation.core.config import ConfigDefaults
from treatment_plan_generation.core.enums import GenerationTask, UrgencyLevel
from treatment_plan_generation.core.models import Assessment, Examination, GenerationRequest


# =============================================================================
# STAGE 1: TREATMENT PLAN TEMPLATES
# =============================================================================
# The JSON block in the system prompt mirrors TreatmentPlan field for field.
# Any change here must be matched in core/models.py.

PLAN_SYSTEM_PROMPT = """You are an expert physical therapist with more than 20 years of experience in movement dysfunction analysis and corrective exercise prescription. Build comprehensive, evidence-based exercise plans that cover:
1. Root causes of movement dysfunction and compensation patterns
2. Biomechanical sources of pain and dysfunction
3. Progressive phases that follow tissue healing timelines
4. Exact prescriptions with sets, reps, frequency and progression criteria
5. Safety precautions and contraindications for the client's condition
6. Expected functional outcomes and timeline milestones

Apply pain science, kinetic chain and functional movement principles. Treat the whole movement system rather than only the painful area, and correct the compensation patterns that keep the dysfunction going.

Respond ONLY with valid JSON in exactly this format:
{
  "overview": "Analysis of the client's movement dysfunction, pain generators and treatment approach",
  "phases": [
    {
      "name": "Phase name (e.g. Acute Pain Management & Early Mobility)",
      "duration": "Timeline (e.g. Weeks 1-2)",
      "goals": ["Specific, measurable goal"],
      "exercises": [
        {
          "name": "Exercise name",
          "description": "Technique: starting position, movement, breathing cues, key teaching points",
          "sets": "Number of sets (e.g. 2-3 sets)",
          "reps": "Reps or duration (e.g. 10-15 reps or 30-60 seconds)",
          "frequency": "How often (e.g. 2-3x daily)",
          "progression": "When and how to advance the exercise"
        }
      ]
    }
  ],
  "precautions": ["Safety considerations and red flags for this client"],
  "progressionNotes": "Overall progression strategy, phase transition timeline and advancement indicators"
}

Every phase needs at least one goal and at least one exercise. All values are strings."""

PLAN_USER_TEMPLATE = """Create a personalized exercise plan for this client based on their assessment:

{assessment_document}

Focus on:
- Identifying and correcting underlying movement dysfunctions and compensation patterns
- Addressing root causes rather than only symptoms
- Progressive functional restoration with measurable outcomes
- Exercise selection suited to the client's condition and goals
- Safety considerations specific to their medical history and current symptoms

Provide specific, actionable prescriptions the client can start immediately."""


# =============================================================================
# STAGE 2: DIAGNOSIS TEMPLATES
# =============================================================================

DIAGNOSIS_SYSTEM_PROMPT = """You are an experienced movement specialist with expertise in posture evaluation, gait analysis and visual assessment of musculoskeletal conditions.

Analyze the provided images or videos together with the description. Cover:

POSTURE:
- Head, neck and shoulder alignment
- Spinal curvatures and pelvic alignment
- Lower extremity alignment and weight distribution
- Muscle imbalances behind any deviation

MOVEMENT AND GAIT:
- Gait cycle abnormalities and compensation patterns
- Balance, stability and range of motion limitations

GENERAL:
- Visible asymmetries, swelling or structural changes
- Likely functional limitations

For posture findings, explain the optimal alignment, the deviation observed, its likely causes and corrective exercises or ergonomic changes.

Respond ONLY with valid JSON in exactly this format:
{{
  "assessment": "Analysis of the visual findings and movement patterns observed",
  "findings": ["Specific finding"],
  "recommendations": ["Recommendation"],
  "urgencyLevel": "{urgency_tokens}",
  "nextSteps": "Next steps for care and follow-up"
}}

Urgency levels:
- high: needs immediate attention (severe deformity, acute injury, neurological signs)
- medium: needs prompt professional evaluation within days
- low: suitable for monitoring or routine consultation

Always state the limits of a visual assessment and recommend an in-person evaluation. Do not name specific medical professions."""

DIAGNOSIS_USER_TEMPLATE = """Please analyze the following examination:

Clinical Description: {description}

I am providing {media_count} media file(s) for analysis. Base the assessment on visual findings, movement patterns and, where videos are present, gait."""


# =============================================================================
# STAGE 3: REQUEST BUILDER
# =============================================================================


class PlanRequestBuilder:
    """
    Builds GenerationRequests for both output contracts.

    What it does:
        Pairs a constant instruction block (declaring the JSON shape) with a
        user payload carrying the serialized assessment or examination.
        Pure: no I/O, no clock, no randomness.

    When to use:
        - Inside TreatmentPlanPipeline before calling the LLM client
        - When inspecting prompts without making API calls

    Example:
        >>> builder = PlanRequestBuilder()
        >>> request = builder.build(assessment)
        >>> assessment.to_document() in request.user_prompt
        True
    """

    def __init__(
        self,
        temperature: float = ConfigDefaults.DEFAULT_TEMPERATURE,
        plan_max_tokens: int = ConfigDefaults.DEFAULT_PLAN_MAX_TOKENS,
        diagnosis_max_tokens: int = ConfigDefaults.DEFAULT_DIAGNOSIS_MAX_TOKENS,
    ):
        self._temperature = temperature
        self._plan_max_tokens = plan_max_tokens
        self._diagnosis_max_tokens = diagnosis_max_tokens

    def build(self, assessment: Assessment) -> GenerationRequest:
        """
        Build a treatment plan request.

        Args:
            assessment: Aggregated client assessment

        Returns:
            GenerationRequest for GenerationTask.TREATMENT_PLAN
        """
        user_prompt = PLAN_USER_TEMPLATE.format(assessment_document=assessment.to_document())
        return GenerationRequest(
            task=GenerationTask.TREATMENT_PLAN,
            system_prompt=PLAN_SYSTEM_PROMPT,
            user_prompt=user_prompt,
            temperature=self._temperature,
            max_tokens=self._plan_max_tokens,
        )

    def build_diagnosis(self, examination: Examination) -> GenerationRequest:
        """
        Build a media-based diagnosis request.

        Each media reference is carried as its own content part; the user
        prompt declares how many were sent.

        Args:
            examination: Description and media references

        Returns:
            GenerationRequest for GenerationTask.DIAGNOSIS
        """
        user_prompt = DIAGNOSIS_USER_TEMPLATE.format(
            description=examination.description,
            media_count=examination.media_count,
        )
        return GenerationRequest(
            task=GenerationTask.DIAGNOSIS,
            system_prompt=DIAGNOSIS_SYSTEM_PROMPT.format(
                urgency_tokens="|".join(UrgencyLevel.get_all_levels())
            ),
            user_prompt=user_prompt,
            media=examination.media,
            temperature=self._temperature,
            max_tokens=self._diagnosis_max_tokens,
        )
