"""
Gemini AI service used as the grading oracle for short answer quizzes
"""
import google.generativeai as genai
from pydantic import ValidationError as PydanticValidationError
from lms.config import settings
from lms.exceptions import OracleError
from lms.schemas.grading import OracleItem, OracleVerdict
import json
import logging
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

# Configure Gemini API
genai.configure(api_key=settings.GEMINI_API_KEY)


class GeminiService:
    """Batch grader for free-text answers"""

    def __init__(self, model_name: str = None):
        self.model = genai.GenerativeModel(
            model_name or settings.GEMINI_MODEL,
            generation_config={"response_mime_type": "application/json"}
        )

    async def grade(self, items: List[OracleItem]) -> List[OracleVerdict]:
        """
        Grade a batch of short answers in a single model call

        Args:
            items: Questions with the student's answers, in submission order

        Returns:
            One verdict per item, as returned by the model

        Raises:
            OracleError: the call failed or the response could not be parsed
        """
        if not items:
            return []

        prompt = self._create_grading_prompt(items)

        try:
            response = await self.model.generate_content_async(prompt)
            text = response.text
        except Exception as e:
            logger.error(f"Gemini grading call failed: {str(e)}")
            raise OracleError(f"grading call failed: {str(e)}") from e

        return self._parse_grading_response(text)

    def _create_grading_prompt(self, items: List[OracleItem]) -> str:
        """Create structured prompt for batch grading"""

        payload = json.dumps([item.model_dump() for item in items], indent=2)

        return f"""
You are an expert educator grading a quiz with precision and care.
I will provide a list of questions and the student's answers.

For each question:
1. Carefully evaluate if the answer is factually correct and demonstrates understanding
2. Be fair but rigorous - partial answers should be marked incorrect unless they fully address the question
3. Provide constructive, educational feedback that helps the student learn

Input (Questions and Student Answers):
{payload}

Return ONLY a valid JSON object (no markdown, no code blocks) with this exact structure:
{{
  "questions": [
    {{
      "question_id": "the question_id from the input, copied exactly",
      "status": "correct" or "incorrect",
      "feedback": "2-4 sentences of plain-text, constructive feedback"
    }}
  ]
}}

The "questions" array MUST have the same length and order as the input array.
"""

    def _parse_grading_response(self, response_text: str) -> List[OracleVerdict]:
        """Parse Gemini's grading response into verdicts"""

        cleaned = (response_text or "").strip()

        # Remove markdown code blocks
        if cleaned.startswith("```json"):
            cleaned = cleaned[7:]
        elif cleaned.startswith("```"):
            cleaned = cleaned[3:]
        if cleaned.endswith("```"):
            cleaned = cleaned[:-3]
        cleaned = cleaned.strip()

        try:
            data: Dict[str, Any] = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse grading JSON: {str(e)}")
            logger.error(f"Response text: {cleaned[:500]}")
            raise OracleError("grading response is not valid JSON") from e

        questions = data.get("questions") if isinstance(data, dict) else None
        if not isinstance(questions, list):
            raise OracleError("grading response has no 'questions' list")

        try:
            return [
                OracleVerdict(
                    question_id=str(q.get("question_id", "")),
                    status=q.get("status"),
                    feedback=q.get("feedback") or "",
                )
                for q in questions
            ]
        except (AttributeError, PydanticValidationError) as e:
            raise OracleError(f"malformed grading item: {str(e)}") from e


# Global instance
gemini_service = GeminiService()
