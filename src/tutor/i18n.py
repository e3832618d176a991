from __future__ import annotations

STRINGS: dict[str, dict[str, str]] = {
    "welcome": {
        "en": (
            "Hi! I'm GETHUB, your English communication tutor.\n"
            "Write me anything in English and I'll give you feedback.\n\n"
            "/exam <number> <topic> - practice exam (e.g. /exam 10 UPSC Civil Services)\n"
            "/native <language> - explain corrections in your native language\n"
            "/context <situation> - set the conversation context\n"
            "/lang en|uk - interface language"
        ),
        "uk": (
            "Привіт! Я GETHUB, ваш репетитор з англійської комунікації.\n"
            "Напишіть мені будь-що англійською, і я дам відгук.\n\n"
            "/exam <кількість> <тема> - пробний іспит (напр. /exam 10 UPSC Civil Services)\n"
            "/native <мова> - пояснення виправлень рідною мовою\n"
            "/context <ситуація> - контекст розмови\n"
            "/lang en|uk - мова інтерфейсу"
        ),
    },
    "lang_set": {"en": "OK, English interface.", "uk": "Гаразд, українська мова інтерфейсу."},
    "lang_usage": {"en": "Usage: /lang en|uk", "uk": "Використання: /lang en|uk"},
    "native_set": {"en": "Native language set to {value}.", "uk": "Рідну мову встановлено: {value}."},
    "native_cleared": {"en": "Native language cleared.", "uk": "Рідну мову скинуто."},
    "context_set": {"en": "Context set to: {value}", "uk": "Контекст: {value}"},
    "context_cleared": {"en": "Context cleared.", "uk": "Контекст скинуто."},
    "exam_usage": {
        "en": "Usage: /exam <1-50> <topic>, e.g. /exam 10 UPSC Civil Services",
        "uk": "Використання: /exam <1-50> <тема>, напр. /exam 10 UPSC Civil Services",
    },
    "exam_generating": {"en": "Preparing {n} questions on {topic}...", "uk": "Готую {n} питань на тему {topic}..."},
    "exam_header": {"en": "Practice exam: {topic}", "uk": "Пробний іспит: {topic}"},
    "answers_header": {"en": "Answers", "uk": "Відповіді"},
    "points": {"en": "pts", "uk": "бал."},
    "exam_more": {"en": "More questions", "uk": "Ще питання"},
    "exam_nothing_to_repeat": {
        "en": "No exam yet. Use /exam <number> <topic>.",
        "uk": "Іспиту ще не було. Використайте /exam <кількість> <тема>.",
    },
    "exam_invalid": {
        "en": "I couldn't put together a valid exam this time. Please try again.",
        "uk": "Цього разу не вдалося скласти коректний іспит. Спробуйте ще раз.",
    },
    "feedback_invalid": {
        "en": "I couldn't form a proper reply. Please send your message again.",
        "uk": "Не вдалося сформувати відповідь. Надішліть повідомлення ще раз.",
    },
    "model_failed": {
        "en": "The tutor is unavailable right now. Please try again later.",
        "uk": "Репетитор зараз недоступний. Спробуйте пізніше.",
    },
    "llm_not_configured": {
        "en": "The tutor is not configured (missing GOOGLE_API_KEY).",
        "uk": "Репетитор не налаштований (немає GOOGLE_API_KEY).",
    },
}

def t(key: str, lang: str, **kwargs: object) -> str:
    text = STRINGS.get(key, {}).get(lang, STRINGS.get(key, {}).get("en", key))
    return text.format(**kwargs) if kwargs else text
