"""
AI tutor service: chat proxy to LLM providers and quiz generation
Gemini first, then DeepSeek and OpenRouter, then a canned phrase bank
"""
import asyncio
import json
import logging
import random
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import google.generativeai as genai
import httpx

from eduprep.config import settings

logger = logging.getLogger(__name__)

if settings.GEMINI_API_KEY:
    genai.configure(api_key=settings.GEMINI_API_KEY)

SYSTEM_PROMPT = (
    "Вы — образовательный ассистент для подготовки к ЕНТ и школьным предметам. "
    "Отвечайте на русском языке; если пользователь пишет по-казахски, отвечайте на казахском. "
    "Короткие абзацы, формулы в LaTeX, не выдумывайте факты."
)

FALLBACK_RU = [
    "Отличный вопрос! Для лучшего понимания этой темы рекомендую разбить её на части и изучать постепенно.",
    "Я вижу, что вы изучаете сложную тему. Давайте разберём её по шагам. Что именно вызывает затруднения?",
    "Это интересная область! Попробуйте найти практические примеры — они помогут лучше усвоить материал.",
    "Хороший подход к обучению! Не забывайте делать перерывы и повторять изученное через определённые интервалы.",
    "Для закрепления материала рекомендую пройти дополнительные тесты по этой теме.",
    "Помните: постоянная практика — ключ к успеху. Попробуйте решать задачи каждый день.",
    "Если у вас есть вопросы по конкретной теме, я готов помочь с объяснениями.",
    "Отличная работа! Продолжайте в том же духе. Какую тему изучаем дальше?",
]

FALLBACK_KZ = [
    "Тамаша сұрақ! Тақырыпты бөліктерге бөліп, біртіндеп оқуды ұсынамын.",
    "Күрделі тақырыпты оқып жатырсыз екен. Қадамдап талдайық. Нақты қай жерде қиындық бар?",
    "Өте қызық тақырып! Тәжірибелік мысалдармен байланыстыру материалды жақсы меңгеруге көмектеседі.",
    "Оқу тәсіліңіз жақсы! Үзіліс жасап, қайталауды ұмытпаңыз.",
    "Материалды бекіту үшін осы тақырып бойынша қосымша тесттерді орындаңыз.",
    "Үздіксіз тәжірибе — табыстың кілті. Күн сайын тапсырмалар шешуге тырысыңыз.",
    "Егер нақты тақырып бойынша сұрақтар болса, түсіндіруге дайынмын.",
    "Жұмысыңыз жақсы! Сол қалпында жалғастыра беріңіз. Келесі тақырып қандай?",
]

# (keyword stems, russian answer, kazakh answer)
SUBJECT_HINTS = [
    (("математик", "алгебр"),
     "Математика требует постоянной практики. Рекомендую решать задачи каждый день, начиная с простых примеров.",
     "Математика тұрақты тәжірибені талап етеді. Қарапайым мысалдардан бастап күн сайын есеп шығарыңыз."),
    (("физик",),
     "Физика — это понимание законов природы. Попробуйте связать теорию с практическими примерами из жизни.",
     "Физика — табиғат заңдарын түсіну. Теорияны өмірдегі мысалдармен байланыстырып көріңіз."),
    (("истори", "тарих"),
     "История помогает понять настоящее. Создайте временные линии для лучшего запоминания дат и событий.",
     "Тарих қазіргі уақытты түсінуге көмектеседі. Даталар мен оқиғаларды жақсы есте сақтау үшін уақыт сызықтарын жасаңыз."),
]

DIFFICULTY_LABELS = {"easy": "легкий", "medium": "средний", "hard": "сложный"}

_KZ_CHARS = re.compile(r"[әғқңөұүһі]", re.IGNORECASE)
_KZ_WORDS = re.compile(r"\b(сәлем|қалай|ия|жоқ|үй|тапсырма|талдау)\b", re.IGNORECASE)


def detect_language(text: str) -> str:
    """'kz' when the text contains Kazakh-specific letters or words, else 'ru'"""
    if _KZ_CHARS.search(text or "") or _KZ_WORDS.search(text or ""):
        return "kz"
    return "ru"


def _strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:-3].strip()
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:-3].strip()
    return cleaned


@dataclass(frozen=True)
class ChatReply:
    response: str
    provider: str  # gemini | deepseek | openrouter | fallback
    error: Optional[str] = None


class AIService:
    """
    Service for tutor chat and AI quiz generation

    Every upstream call is bounded by ``AI_TIMEOUT_SECONDS``; a failing or
    slow provider falls through to the next one and the phrase bank always
    answers last, so callers never see an upstream error.
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        rng: Optional[random.Random] = None
    ):
        self._transport = transport
        self._random = rng or random.Random()

    async def chat(
        self,
        message: str,
        context: Optional[str] = None,
        language: Optional[str] = None
    ) -> ChatReply:
        """
        Answer a tutoring question

        Args:
            message: User question
            context: Optional topic or page context
            language: 'ru' or 'kz'; detected from the message when omitted

        Returns:
            ChatReply with the answering provider
        """
        prompt = f"Контекст: {context or 'Общий вопрос'}. Вопрос пользователя: {message}"
        last_error: Optional[str] = None

        if settings.GEMINI_API_KEY:
            try:
                text = await self._ask_gemini(prompt)
                if text:
                    return ChatReply(text, "gemini")
            except Exception as e:
                last_error = f"Gemini error: {str(e)}"
                logger.warning(last_error)

        if settings.DEEPSEEK_API_KEY:
            try:
                text = await self._ask_chat_completions(
                    url=settings.DEEPSEEK_URL,
                    api_key=settings.DEEPSEEK_API_KEY,
                    model="deepseek-chat",
                    prompt=prompt
                )
                if text:
                    return ChatReply(text, "deepseek", last_error)
            except Exception as e:
                last_error = f"DeepSeek error: {str(e)}"
                logger.warning(last_error)

        if settings.OPENROUTER_API_KEY:
            try:
                text = await self._ask_chat_completions(
                    url=settings.OPENROUTER_URL,
                    api_key=settings.OPENROUTER_API_KEY,
                    model=settings.OPENROUTER_MODEL,
                    prompt=prompt,
                    extra_headers={
                        "HTTP-Referer": settings.OPENROUTER_REFERER,
                        "X-Title": settings.APP_NAME
                    }
                )
                if text:
                    return ChatReply(text, "openrouter", last_error)
            except Exception as e:
                last_error = f"OpenRouter error: {str(e)}"
                logger.warning(last_error)

        return ChatReply(self.fallback_response(message, language), "fallback", last_error)

    async def _ask_gemini(self, prompt: str, system_prompt: str = SYSTEM_PROMPT) -> Optional[str]:
        model = genai.GenerativeModel(settings.GEMINI_MODEL)
        response = await asyncio.wait_for(
            model.generate_content_async([system_prompt, prompt]),
            timeout=settings.AI_TIMEOUT_SECONDS
        )
        text = (response.text or "").strip()
        return text or None

    async def _ask_chat_completions(
        self,
        url: str,
        api_key: str,
        model: str,
        prompt: str,
        extra_headers: Optional[Dict[str, str]] = None
    ) -> Optional[str]:
        """POST an OpenAI-compatible chat completion and return the first message"""
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
            **(extra_headers or {})
        }
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt}
            ],
            "max_tokens": settings.AI_MAX_TOKENS,
            "temperature": 0.7
        }
        async with httpx.AsyncClient(
            timeout=settings.AI_TIMEOUT_SECONDS,
            transport=self._transport
        ) as client:
            response = await client.post(url, headers=headers, json=payload)
            response.raise_for_status()
            data = response.json()
        text = (data["choices"][0]["message"]["content"] or "").strip()
        return text or None

    def fallback_response(self, message: str, language: Optional[str] = None) -> str:
        """Canned answer: subject hint when a keyword matches, else a random encouragement"""
        lang = language or detect_language(message)
        lowered = (message or "").lower()

        for keywords, answer_ru, answer_kz in SUBJECT_HINTS:
            if any(keyword in lowered for keyword in keywords):
                return answer_kz if lang == "kz" else answer_ru

        pool = FALLBACK_KZ if lang == "kz" else FALLBACK_RU
        return self._random.choice(pool)

    async def generate_quiz(
        self,
        subject: str,
        difficulty: str,
        count: int
    ) -> List[Dict[str, Any]]:
        """
        Generate multiple-choice questions for a subject

        Asks Gemini when configured; placeholder questions otherwise or
        when the model output cannot be parsed.
        """
        count = min(settings.MAX_GENERATED_QUESTIONS, max(1, int(count)))
        level = DIFFICULTY_LABELS.get(difficulty, DIFFICULTY_LABELS["medium"])

        if settings.GEMINI_API_KEY:
            try:
                text = await self._ask_gemini(
                    self._create_quiz_prompt(subject, level, count),
                    system_prompt="Return ONLY valid JSON."
                )
                if text:
                    return self._parse_quiz_response(text, subject, difficulty, count)
            except Exception as e:
                logger.error(f"Failed to generate quiz: {str(e)}")

        return self._create_fallback_questions(subject, difficulty, level, count)

    def _create_quiz_prompt(self, subject: str, level: str, count: int) -> str:
        return f"""
Составь {count} вопросов с выбором ответа по теме "{subject}" (уровень: {level}).
Каждый вопрос: 4 варианта, ровно один правильный.

Верни ТОЛЬКО JSON-массив без markdown:
[
  {{
    "text": "Текст вопроса?",
    "options": ["Вариант 1", "Вариант 2", "Вариант 3", "Вариант 4"],
    "correct_answer_index": 0,
    "explanation": "Краткое объяснение"
  }}
]
"""

    def _parse_quiz_response(
        self,
        response_text: str,
        subject: str,
        difficulty: str,
        count: int
    ) -> List[Dict[str, Any]]:
        """Parse model output into question dicts; fall back on malformed JSON"""
        level = DIFFICULTY_LABELS.get(difficulty, DIFFICULTY_LABELS["medium"])
        try:
            items = json.loads(_strip_code_fence(response_text))
            if not isinstance(items, list):
                raise ValueError("Response is not a list of questions")
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Failed to parse quiz JSON: {str(e)}")
            logger.error(f"Response text: {response_text[:500]}")
            return self._create_fallback_questions(subject, difficulty, level, count)

        stamp = int(time.time() * 1000)
        questions = []
        for i, item in enumerate(items[:count]):
            options = item.get("options") if isinstance(item, dict) else None
            index = item.get("correct_answer_index") if isinstance(item, dict) else None
            if not isinstance(options, list) or len(options) < 2 or not isinstance(index, int) \
                    or not 0 <= index < len(options):
                logger.warning(f"Dropping malformed generated question #{i + 1}")
                continue
            questions.append({
                "id": f"ai-q-{stamp}-{i}",
                "text": str(item.get("text", "")) or f"Вопрос {i + 1}",
                "options": [str(option) for option in options],
                "correct_answer_index": index,
                "subject": subject,
                "difficulty": difficulty if difficulty in DIFFICULTY_LABELS else "medium",
                "explanation": item.get("explanation")
            })

        if not questions:
            return self._create_fallback_questions(subject, difficulty, level, count)
        return questions

    def _create_fallback_questions(
        self,
        subject: str,
        difficulty: str,
        level: str,
        count: int
    ) -> List[Dict[str, Any]]:
        """Placeholder questions when generation is unavailable"""
        stamp = int(time.time() * 1000)
        return [
            {
                "id": f"ai-q-{stamp}-{i}",
                "text": f"Вопрос {i + 1} по теме \"{subject}\" (уровень: {level})",
                "options": ["Вариант 1", "Вариант 2", "Вариант 3", "Вариант 4"],
                "correct_answer_index": 0,
                "subject": subject,
                "difficulty": difficulty if difficulty in DIFFICULTY_LABELS else "medium",
                "explanation": "Демонстрационный вопрос, сгенерированный ИИ-системой."
            }
            for i in range(count)
        ]


# Global instance
ai_service = AIService()
