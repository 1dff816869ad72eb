"""
Question providers.

Both providers return one question whose text has not been asked earlier in
the session; the history passed in is the session's exchanges so far.
"""
import logging
import random
from datetime import datetime, timezone
from typing import List, Optional, Protocol, Sequence

from .models import Category, Difficulty, Exchange, Question
from .prompts import InterviewPrompts
from .schemas import GenerateQuestionInput, GenerateQuestionOutput, InterviewExchangeInput, validate_payload
from ..config import QUESTION_ATTEMPTS, QUESTION_TEMPERATURE
from ..errors import UpstreamCallError, QuestionPoolExhaustedError
from ..infrastructure.llm import VertexRestClient

logger = logging.getLogger("question_provider")


QUESTION_BANK: List[Question] = [
    Question("1", Category.BEHAVIORAL, Difficulty.EASY, "Tell me about yourself."),
    Question("2", Category.BEHAVIORAL, Difficulty.EASY, "What are your strengths and weaknesses?"),
    Question("3", Category.BEHAVIORAL, Difficulty.MEDIUM,
             "Describe a challenging situation you faced at work and how you handled it."),
    Question("4", Category.BEHAVIORAL, Difficulty.MEDIUM, "Where do you see yourself in 5 years?"),
    Question("5", Category.BEHAVIORAL, Difficulty.HARD, "How do you handle conflict with a coworker?"),
    Question("6", Category.TECHNICAL, Difficulty.EASY,
             "What is the difference between `let`, `const`, and `var` in JavaScript?"),
    Question("7", Category.TECHNICAL, Difficulty.MEDIUM, 'Explain the concept of "this" in JavaScript.'),
    Question("8", Category.TECHNICAL, Difficulty.MEDIUM, "What are promises and how do they work?"),
    Question("9", Category.TECHNICAL, Difficulty.HARD, "Explain the event loop in Node.js."),
    Question("10", Category.TECHNICAL, Difficulty.HARD,
             "What is a closure in JavaScript? Provide an example."),
]


class QuestionProvider(Protocol):
    def next_question(self, category: Category, difficulty: Difficulty,
                      history: Sequence[Exchange]) -> Question: ...


def asked_texts(history: Sequence[Exchange]) -> set:
    return {exchange.question.text.strip() for exchange in history}


class GenerativeQuestionProvider:
    """Generates conversational follow-up questions with Gemini."""

    capability = "question"

    def __init__(self, llm_client: VertexRestClient,
                 attempts: int = QUESTION_ATTEMPTS,
                 temperature: float = QUESTION_TEMPERATURE):
        self.llm_client = llm_client
        self.attempts = max(1, attempts)
        self.temperature = temperature

    def next_question(self, category: Category, difficulty: Difficulty,
                      history: Sequence[Exchange]) -> Question:
        request = GenerateQuestionInput(
            category=category.value,
            difficulty=difficulty.value,
            previous_exchanges=[
                InterviewExchangeInput(question=exchange.question.text, answer=exchange.answer)
                for exchange in history
            ],
        )
        prompt = InterviewPrompts.question_generation(
            request.category, request.difficulty, request.previous_exchanges
        )
        already_asked = asked_texts(history)

        for attempt in range(1, self.attempts + 1):
            raw = self.llm_client.generate_json(prompt, temperature=self.temperature)
            text = validate_payload(GenerateQuestionOutput, raw, self.capability).question
            if text not in already_asked:
                logger.info("Generated question (attempt %d): %s", attempt, text)
                return Question(
                    id=datetime.now(timezone.utc).isoformat(),
                    category=category,
                    difficulty=difficulty,
                    text=text,
                )
            logger.warning("Model repeated an earlier question (attempt %d/%d)", attempt, self.attempts)

        raise UpstreamCallError(
            "Could not generate a question that was not already asked",
            capability=self.capability,
            context={"attempts": self.attempts},
        )


class StaticQuestionProvider:
    """Serves questions from a fixed bank without repeats."""

    def __init__(self, bank: Optional[Sequence[Question]] = None, rng: Optional[random.Random] = None):
        self.bank = list(bank if bank is not None else QUESTION_BANK)
        self.rng = rng or random.Random()

    def next_question(self, category: Category, difficulty: Difficulty,
                      history: Sequence[Exchange]) -> Question:
        already_asked = asked_texts(history)
        unasked = [q for q in self.bank if q.category == category and q.text.strip() not in already_asked]

        exact = [q for q in unasked if q.difficulty == difficulty]
        pool = exact or unasked
        if not pool:
            raise QuestionPoolExhaustedError(
                f"No unasked {category.value} questions left",
                capability="question",
                context={"difficulty": difficulty.value},
            )
        if not exact:
            logger.info("No unasked %s/%s questions left, widening to any difficulty",
                        category.value, difficulty.value)
        return self.rng.choice(pool)
