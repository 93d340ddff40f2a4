from datetime import date

# =========================
# PDF → LESSON PLAN PROMPTS
# =========================

ASSISTANT_NAME = "Lesson Plan Generator"

ASSISTANT_INSTRUCTIONS = """
You are an expert curriculum designer and educator. You will analyze an attached
textbook PDF and create comprehensive lesson plans.

CRITICAL: You MUST respond with ONLY a valid JSON object. Do not include any
markdown formatting, code blocks, or additional text.

Return ONLY this JSON structure (no markdown, no code blocks):
{{
  "lessonPlans": {{
    "{start}": {{
      "dayNumber": 1,
      "title": "Day 1 - Introduction to Physics Concepts",
      "date": "{start}",
      "duration": "Approximately 1 hour",
      "notes": ["Key concept 1", "Key concept 2", "Important formula"],
      "reviewQuestions": ["What is the definition of...?", "How do you calculate...?"],
      "miniQuiz": [
        {{
          "question": "What is the SI unit of force?",
          "options": ["Newton", "Joule", "Watt", "Pascal"],
          "correctAnswer": 0,
          "explanation": "The Newton is the SI unit of force, named after Sir Isaac Newton."
        }}
      ],
      "standards": ["NGSS-HS-PS2-1", "Chapter 1 Objectives"],
      "chapter": "Chapter 1: Introduction to Physics"
    }}
  }}
}}

Requirements:
- Create one lesson plan for each day of the requested duration
- Each lesson should be approximately 1 hour
- Include 5-8 student notes per lesson
- Include 3-5 review questions per lesson
- Include 3-5 quiz questions per lesson, each with exactly 4 options,
  a zero-based "correctAnswer" index and an explanation
- Base ALL content directly on the attached textbook PDF
- Use real dates in YYYY-MM-DD format as the keys of "lessonPlans"
- Start on {start} and schedule on weekdays only (skip Sat/Sun)
- Prefix each lesson title with "Day N - " where N starts at 1
- Also include a field "dayNumber": N for each lesson
"""

USER_PROMPT = """
Please analyze the attached textbook PDF and create a {duration}-day lesson plan.

{extra}

Start on {start}, schedule on weekdays only (skip Sat/Sun). Prefix titles with
"Day N - " and include a numeric dayNumber field.
"""


def build_assistant_instructions(start: date) -> str:
    return ASSISTANT_INSTRUCTIONS.format(start=start.isoformat()).strip()


def build_user_prompt(duration_days: int, teacher_prompt: str, start: date) -> str:
    extra = ""
    if teacher_prompt and teacher_prompt.strip():
        extra = f"Additional instructions: {teacher_prompt.strip()}"
    return USER_PROMPT.format(
        duration=duration_days,
        extra=extra,
        start=start.isoformat(),
    ).strip()
