"""
Interview prompt templates.

This module contains all the prompt templates used by the coach, keeping them
separate from the client logic for easier maintenance and editing.
"""

from typing import List

from .schemas import InterviewExchangeInput


class InterviewPrompts:
    """Collection of all coach prompts."""

    @staticmethod
    def question_generation(category: str, difficulty: str,
                            previous_exchanges: List[InterviewExchangeInput]) -> str:
        """Prompt for the next question in a live interview."""
        if previous_exchanges:
            conversation = "\n".join(
                f"Interviewer: {exchange.question}\nCandidate: {exchange.answer}\n---"
                for exchange in previous_exchanges
            )
        else:
            conversation = "(This is the first question of the interview.)"

        return f"""
You are an expert interviewer conducting a live interview. Your goal is to have a natural, conversational interview.

The interview is about:
- Category: {category}
- Difficulty: {difficulty}

Here is the conversation so far:
{conversation}

Based on the conversation, especially the candidate's last answer, ask the next logical follow-up question.
The question should feel like a natural continuation of the dialogue.
If this is the first question, generate a good opening question for the specified category and difficulty.

Do not repeat any questions that have already been asked.

Respond with a JSON object with a single key 'question' holding only the text of the new question.
        """.strip()

    @staticmethod
    def transcription() -> str:
        """Prompt sent alongside the inline audio part."""
        return """
Transcribe the attached audio into text.

Respond with a JSON object with a single key 'transcription'. If nothing is said, use an empty string.
        """.strip()

    @staticmethod
    def answer_feedback(question: str, answer: str) -> str:
        """Prompt for qualitative feedback on an answer."""
        return f"""
You are an AI assistant providing feedback on interview answers.

Provide feedback on the following aspects of the answer:
- Clarity: How clear and easy to understand was the answer?
- Conciseness: Was the answer concise and to the point? Was it too long or too short?
- Overall Quality: What was the overall quality of the answer?

Offer suggestions for improving the answer in the future.

Question: {question}
Answer: {answer}

The output should be a JSON object with keys 'clarity', 'conciseness', 'overallQuality', and 'suggestions'.
Each key should be a string containing the feedback for that aspect of the answer.
        """.strip()
